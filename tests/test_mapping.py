from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

import pytest

from svcutil.binding_errors import FieldError
from svcutil.mapping import MappingError, bind_query, map_form_by_tag, query_filter


@query_filter
@dataclass
class StringFilter:
    is_: Optional[str] = field(default=None, metadata={"json": "is"})
    is_not: Optional[str] = field(default=None, metadata={"json": "is_not"})
    in_: Optional[list[str]] = field(default=None, metadata={"json": "in"})


@query_filter
@dataclass
class NumberFilter:
    gt: Optional[int] = field(default=None, metadata={"json": "gt"})
    between: Optional[list[int]] = field(default=None, metadata={"json": "between"})


@query_filter
@dataclass
class BooleanFilter:
    is_: Optional[bool] = field(default=None, metadata={"json": "is"})


@query_filter
@dataclass
class TimestampFilter:
    after: Optional[int] = field(default=None, metadata={"json": "after"})
    between: Optional[list[int]] = field(default=None, metadata={"json": "between"})


@query_filter
@dataclass
class SortFilter:
    asc: str = field(default="", metadata={"json": "asc"})
    desc: str = field(default="", metadata={"json": "desc"})


@dataclass
class Search:
    region: Optional[StringFilter] = field(default=None, metadata={"mTag": "region"})
    org_id: Optional[StringFilter] = field(default=None, metadata={"mTag": "org_id"})
    num: Optional[NumberFilter] = field(default=None, metadata={"mTag": "num"})
    boo: Optional[BooleanFilter] = field(default=None, metadata={"mTag": "bool"})
    time: Optional[TimestampFilter] = field(default=None, metadata={"mTag": "time"})
    sort_by: Optional[SortFilter] = field(default=None, metadata={"mTag": "sortBy"})


def test_mtag_binding():
    values = {
        "region[is]": ["VN"],
        "region[in]": ["FGHJ,GHUIJ,TFYGUIHO"],
        "org_id[in]": ["cytgvhjk,tyguhijlk"],
        "num[gt]": ["34567"],
        "num[between]": ["12345,45678"],
        "bool[is]": ["true"],
        "time[after]": ["97754"],
        "time[between]": ["9722,5678"],
        "sortBy[asc]": ["XDXD"],
    }
    obj = Search()
    assert map_form_by_tag(obj, values, "mTag") is True
    assert obj == Search(
        region=StringFilter(is_="VN", in_=["FGHJ", "GHUIJ", "TFYGUIHO"]),
        org_id=StringFilter(in_=["cytgvhjk", "tyguhijlk"]),
        num=NumberFilter(gt=34567, between=[12345, 45678]),
        boo=BooleanFilter(is_=True),
        time=TimestampFilter(after=97754, between=[9722, 5678]),
        sort_by=SortFilter(asc="XDXD"),
    )


def test_untouched_filters_stay_none():
    obj = Search()
    map_form_by_tag(obj, {"num[gt]": ["1"]}, "mTag")
    assert obj.region is None
    assert obj.num == NumberFilter(gt=1)


def test_brackets_stripped_from_values():
    obj = Search()
    map_form_by_tag(obj, {"num[between]": ["[1,2]"]}, "mTag")
    assert obj.num.between == [1, 2]


@dataclass
class Plain:
    page: int = field(default=0, metadata={"mTag": "page,default=7"})
    names: list[str] = field(default_factory=list, metadata={"mTag": "names"})
    wait: timedelta = field(default=timedelta(0), metadata={"mTag": "wait"})
    skip: str = field(default="keep", metadata={"mTag": "-"})
    word: str = field(default="", metadata={"mTag": "word", "binding": "required"})


def test_bind_query_scalars_and_defaults():
    obj = bind_query(Plain(), "names=a,b&wait=1h30m&skip=x&word=hi")
    assert obj.page == 7
    assert obj.names == ["a", "b"]
    assert obj.wait == timedelta(hours=1, minutes=30)
    assert obj.skip == "keep"


def test_bind_query_validates():
    with pytest.raises(FieldError):
        bind_query(Plain(), "page=1")


def test_bad_integer_raises():
    with pytest.raises(MappingError):
        map_form_by_tag(Plain(), {"page": ["abc"]}, "mTag")