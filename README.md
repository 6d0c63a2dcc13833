# svcutil

Small building blocks for HTTP services, with no dependencies beyond the
standard library.

## What is inside

- `svcutil.convert`: helpers for optional values (`string_value`,
  `int_value`, `value_list`, `value_map`, ...) and epoch conversions
  (`seconds_time_value`, `milliseconds_time_value`, `time_unix_milli`).
- `svcutil.bytesconv`: `string_to_bytes` and `bytes_to_string`.
- `svcutil.paging`: `Paginator` and `paginator_from_query`. These read the
  `pageCurrent` and `pageSize` query parameters. The default page size is 40
  and the largest allowed is 5000.
- `svcutil.binding_errors`: `FieldError`, `FieldErrors` and `FieldErrInfo`.
  They describe input that failed validation.
- `svcutil.validation`: a `Validator` you can extend with
  `register_validation`, plus the `validate_zone_domain` and
  `validate_fqdn_domain` checks.
- `svcutil.mapping`: binds query strings such as `region[in]=a,b` or
  `num[gt]=3` onto filter objects, through `bind_query` and
  `map_form_by_tag`. Use `query_filter` to mark a class as a filter.
- `svcutil.query`: the filter types `StringFilter`, `NumberFilter`,
  `BooleanFilter` and `SortFilter`, a `Query` builder, and `WhereBuilder`,
  which turns filters into SQL conditions with parameters. Also here:
  `parse_db_error` and the batching and id helpers.
- `svcutil.response`: `ResponseContext`, which builds the standard
  `{"meta": ..., "data": ...}` response envelope, and `CustomError`.
- `svcutil.tracing_attributes`: records request and response details onto a
  span. Headers and query keys that hold credentials are left out.

## Example

```python
from svcutil.paging import paginator_from_query

page = paginator_from_query({"pageCurrent": ["2"], "pageSize": ["10"]})
page.set_total_count(25)
assert (page.offset, page.total_page) == (10, 3)
```

```python
from svcutil.validation import validate_fqdn_domain, validate_zone_domain

assert validate_zone_domain("*.example.com")
assert not validate_fqdn_domain("*.example.com")
```

## Running the tests

```
pip install -e ".[test]"
pytest
```