"""Read-only queries over the compounding module's state."""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import CompoundError, InternalError, InvalidArgumentError, NotFoundError
from .keeper import COMPOUND_SETTING_KEY_PREFIX, PREVIOUS_COMPOUND_KEY_PREFIX, Keeper
from .models import CompoundSetting, Context, Params, PreviousCompound
from .store import PageRequest, PageResponse, paginate


@dataclass
class QueryAllCompoundSettingRequest:
    pagination: PageRequest | None = None


@dataclass
class QueryAllCompoundSettingResponse:
    compound_setting: list[CompoundSetting] = field(default_factory=list)
    pagination: PageResponse = field(default_factory=PageResponse)


@dataclass
class QueryGetCompoundSettingRequest:
    delegator: str = ""


@dataclass
class QueryGetCompoundSettingResponse:
    compound_setting: CompoundSetting = field(default_factory=CompoundSetting)


@dataclass
class QueryAllPreviousCompoundRequest:
    pagination: PageRequest | None = None


@dataclass
class QueryAllPreviousCompoundResponse:
    previous_compound: list[PreviousCompound] = field(default_factory=list)
    pagination: PageResponse = field(default_factory=PageResponse)


@dataclass
class QueryGetPreviousCompoundRequest:
    delegator: str = ""


@dataclass
class QueryGetPreviousCompoundResponse:
    previous_compound: PreviousCompound = field(default_factory=PreviousCompound)


@dataclass
class QueryParamsRequest:
    pass


@dataclass
class QueryParamsResponse:
    params: Params = field(default_factory=Params)


def _require(request: object) -> None:
    if request is None:
        raise InvalidArgumentError("invalid request")


class QueryServer:
    """Answers queries using a keeper."""

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    @staticmethod
    def _page(ctx: Context, prefix: bytes, pagination: PageRequest | None) -> tuple[list, PageResponse]:
        try:
            return paginate(ctx.store, prefix, pagination)
        except CompoundError as exc:
            raise InternalError(str(exc)) from exc

    def compound_setting_all(
        self, ctx: Context, request: QueryAllCompoundSettingRequest | None
    ) -> QueryAllCompoundSettingResponse:
        _require(request)
        values, page = self._page(ctx, COMPOUND_SETTING_KEY_PREFIX, request.pagination)
        return QueryAllCompoundSettingResponse(compound_setting=values, pagination=page)

    def compound_setting(
        self, ctx: Context, request: QueryGetCompoundSettingRequest | None
    ) -> QueryGetCompoundSettingResponse:
        _require(request)
        value = self.keeper.get_compound_setting(ctx, request.delegator)
        if value is None:
            raise NotFoundError("not found")
        return QueryGetCompoundSettingResponse(compound_setting=value)

    def previous_compound_all(
        self, ctx: Context, request: QueryAllPreviousCompoundRequest | None
    ) -> QueryAllPreviousCompoundResponse:
        _require(request)
        values, page = self._page(ctx, PREVIOUS_COMPOUND_KEY_PREFIX, request.pagination)
        return QueryAllPreviousCompoundResponse(previous_compound=values, pagination=page)

    def previous_compound(
        self, ctx: Context, request: QueryGetPreviousCompoundRequest | None
    ) -> QueryGetPreviousCompoundResponse:
        _require(request)
        value = self.keeper.get_previous_compound(ctx, request.delegator)
        if value is None:
            raise NotFoundError("not found")
        return QueryGetPreviousCompoundResponse(previous_compound=value)

    def params(self, ctx: Context, request: QueryParamsRequest | None) -> QueryParamsResponse:
        _require(request)
        return QueryParamsResponse(params=self.keeper.get_params(ctx))