"""In-memory directory of author profile summaries."""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

import structlog

from domain.entities.profile import SUMMARY_COLUMNS, ProfileSummary
from domain.repositories.gateway import PROFILES_TABLE, IDataGateway, QueryFilter

logger = structlog.get_logger()


class ProfileDirectoryCache:
    """Maps user id to profile summary, refreshed on demand from the gateway.

    The map is never merged incrementally: ``refresh`` builds a complete new
    map and swaps it in only once the fetch has succeeded, so a failed fetch
    leaves the previous snapshot intact rather than half-updated.
    """

    def __init__(self, gateway: IDataGateway) -> None:
        self._gateway = gateway
        self._profiles: Mapping[str, ProfileSummary] = MappingProxyType({})

    async def refresh(self, user_ids: Iterable[str]) -> Mapping[str, ProfileSummary]:
        """Fetch summaries for exactly ``user_ids`` in one query and replace the cache.

        Raises:
            GatewayError: if the query fails; the cache is left unchanged.
        """
        ids = list(dict.fromkeys(user_ids))
        records = await self._gateway.query_records(
            PROFILES_TABLE,
            columns=SUMMARY_COLUMNS,
            filters=[QueryFilter.in_("id", ids)],
        )

        profiles: dict[str, ProfileSummary] = {}
        for record in records:
            summary = ProfileSummary.from_record(record)
            profiles[summary.id] = summary

        self._profiles = MappingProxyType(profiles)
        logger.debug(
            "profile_directory_refreshed",
            requested=len(ids),
            resolved=len(profiles),
        )
        return self._profiles

    def get(self, user_id: str) -> ProfileSummary | None:
        return self._profiles.get(user_id)

    def snapshot(self) -> Mapping[str, ProfileSummary]:
        """Read-only view of the current map."""
        return self._profiles

    def clear(self) -> None:
        self._profiles = MappingProxyType({})

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._profiles
