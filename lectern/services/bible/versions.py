# lectern/services/bible/versions.py
"""
Bible version table and version reference resolution.

Only a Version.id is ever sent upstream. Callers may refer to a version
by abbreviation ("kjv"), by a known alias ("en-kjv") or by its id.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Version:
    """A translation known to the upstream text API."""
    id: str
    name: str
    abbreviation: str
    language: str
    supported: bool = True
    aliases: frozenset = field(default_factory=frozenset)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "language": self.language,
            "supported": self.supported,
        }


BIBLE_VERSIONS = (
    Version(
        id="9879dbb7cfe39e4d-01",
        name="New Revised Standard Version",
        abbreviation="NRSV",
        language="en",
        aliases=frozenset({"nrsv", "en-nrsv"}),
    ),
    Version(
        id="de4e12af7f28f599-01",
        name="King James Version",
        abbreviation="KJV",
        language="en",
        aliases=frozenset({"kjv", "en-kjv"}),
    ),
    Version(
        id="0b262f1ed7f084a6-01",
        name="Hebrew Bible",
        abbreviation="WLC",
        language="heb",
        aliases=frozenset({"wlc"}),
    ),
    Version(
        id="7644de2e4c5188e5-01",
        name="Text-Critical Greek New Testament",
        abbreviation="GNT",
        language="grc",
        aliases=frozenset({"gnt"}),
    ),
    Version(
        id="c114c33098c4fef1-01",
        name="Brenton Greek Septuagint",
        abbreviation="LXX",
        language="grc",
        aliases=frozenset({"lxx"}),
    ),
)

DEFAULT_VERSION = BIBLE_VERSIONS[0].id


class VersionResolver:
    """
    Maps version references to canonical upstream ids.

    resolve() never raises: an unrecognized reference is passed through
    unchanged so the upstream call can fail with its own status.
    """

    def __init__(self, versions=BIBLE_VERSIONS):
        self.versions = tuple(versions)
        self._by_alias = {}
        self._by_id = {}
        for version in self.versions:
            self._by_id[version.id.lower()] = version
            for alias in version.aliases:
                self._by_alias[alias.lower()] = version

    def resolve(self, ref: str) -> str:
        """Return the canonical version id for ref."""
        if not ref:
            return ref

        key = ref.strip().lower()

        version = self._by_alias.get(key)
        if version:
            return version.id

        version = self._by_id.get(key)
        if version and version.supported:
            return version.id

        logger.warning(f"Bible version {ref} not recognized, passing through")
        return ref

    def get_version(self, ref: str) -> Optional[Version]:
        """Look up a Version by alias or id."""
        if not ref:
            return None
        key = ref.strip().lower()
        return self._by_alias.get(key) or self._by_id.get(key)

    def supported_versions(self) -> list[Version]:
        return [v for v in self.versions if v.supported]
