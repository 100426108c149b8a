"""Pydantic models describing store records and derived payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedRecordError

RecordId = int | str

ModelT = TypeVar("ModelT", bound=BaseModel)


class Category(BaseModel):
    """A grouping of ranked items such as "Movies" or "Ramen shops"."""

    id: RecordId
    name: str
    name_en: str | None = None
    icon: str = ""
    display_order: int | None = None


class RankingItem(BaseModel):
    """One entry of a category ranking owned by the store."""

    id: RecordId | None = None
    title: str | None = None
    title_en: str | None = None
    rank: int
    category_id: RecordId | None = None
    created_at: datetime | None = None


class Favorite(BaseModel):
    """A user-owned ranking slot with a free-text category label."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: str
    slot: int | None = None
    category: str | None = None
    user_id: str
    created_at: datetime | None = None


class Profile(BaseModel):
    """Public-facing account record gating cross-user aggregations."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    handle: str | None = None
    display_name: str | None = None
    is_public: bool = False


class PopularityEntry(BaseModel):
    """A ranked, aggregated title across public favorites."""

    rank: int
    title: str
    category: str | None = None
    count: int


class DigestPick(BaseModel):
    """A top-ranked item chosen for the daily digest."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    category_name: str = Field(
        validation_alias=AliasChoices("category_name", "categoryName"),
        serialization_alias="categoryName",
    )
    category_icon: str = Field(
        validation_alias=AliasChoices("category_icon", "categoryIcon"),
        serialization_alias="categoryIcon",
    )


class FavoriteSearchResult(BaseModel):
    """A favorite matched by free-text search, joined to its owner."""

    title: str
    slot: int | None = None
    category: str | None = None
    handle: str = ""
    display_name: str | None = None
    created_at: datetime | None = None


class SearchResponse(BaseModel):
    results: list[FavoriteSearchResult] = Field(default_factory=list)
    query: str


class MovieSearchResult(BaseModel):
    """Movie lookup result returned by the metadata search endpoint."""

    id: int
    title: str
    poster_url: str | None = None
    release_year: str | None = None
    rating: float | None = None
    overview: str | None = None


class DigestResult(BaseModel):
    success: bool = True
    item: str
    trivia: str
    message: str


def coerce_record(model: type[ModelT], record: ModelT | Mapping[str, Any]) -> ModelT:
    """Return ``record`` as an instance of ``model``.

    Raises :class:`MalformedRecordError` when a raw row does not fit the model.
    """

    if isinstance(record, model):
        return record
    if not isinstance(record, Mapping):
        raise MalformedRecordError(
            f"Expected a mapping for {model.__name__}, got {type(record).__name__}",
            record,
        )
    try:
        return model.model_validate(dict(record))
    except ValidationError as exc:
        raise MalformedRecordError(
            f"Invalid {model.__name__} record: {exc.error_count()} error(s)", record
        ) from exc


def coerce_records(
    model: type[ModelT],
    records: Iterable[ModelT | Mapping[str, Any]],
    on_skip: Callable[[MalformedRecordError], None] | None = None,
) -> list[ModelT]:
    """Coerce every record, skipping malformed ones and reporting them to ``on_skip``."""

    coerced: list[ModelT] = []
    for record in records:
        try:
            coerced.append(coerce_record(model, record))
        except MalformedRecordError as exc:
            if on_skip is not None:
                on_skip(exc)
    return coerced
