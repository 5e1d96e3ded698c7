"""
Security analysis over the full vault.

Four independent checks, each a pure function of the record sequence:
duplicate sites, reused passwords, weak passwords and incomplete entries.
Groups are reported in first-occurrence order and flagged records in vault
order, so repeated calls on an unchanged vault give identical results.

The weak-password check here requires every character class and a minimum
length. It is deliberately stricter than the graded tiers in strength.py.
"""

import re
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from . import config

UPPERCASE = re.compile(r"[A-Z]")
LOWERCASE = re.compile(r"[a-z]")
DIGIT = re.compile(r"[0-9]")
SPECIAL = re.compile(r"[^A-Za-z0-9]")


class FindingKind(str, Enum):
    DUPLICATE_SITE = "duplicate-site"
    DUPLICATE_PASSWORD = "duplicate-password"
    WEAK_PASSWORD = "weak-password"
    INCOMPLETE_ENTRY = "incomplete-entry"


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Finding:
    """A derived, never persisted observation about the vault."""
    kind: FindingKind
    severity: Severity
    detail: str
    records: Tuple[Any, ...] = ()

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL


@dataclass
class SiteGroup:
    site: str
    count: int
    records: List[Any] = field(default_factory=list)


@dataclass
class PasswordGroup:
    password: str
    count: int
    records: List[Any] = field(default_factory=list)


@dataclass
class SecurityReport:
    """All four finding sets for one vault snapshot."""
    duplicate_sites: List[SiteGroup]
    duplicate_passwords: List[PasswordGroup]
    weak_passwords: List[Any]
    incomplete_entries: List[Any]

    @property
    def is_clean(self) -> bool:
        return not (self.duplicate_sites or self.duplicate_passwords
                    or self.weak_passwords or self.incomplete_entries)


def _text(record: Any, name: str) -> str:
    """Read a field from a CredentialRecord or a plain dict, as text."""
    if isinstance(record, dict):
        value = record.get(name)
    else:
        value = getattr(record, name, None)
    return "" if value is None else str(value)


def _group(records: Sequence[Any], key) -> Dict[str, List[Any]]:
    groups: Dict[str, List[Any]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def find_duplicate_sites(records: Sequence[Any]) -> List[SiteGroup]:
    """Sites (compared case-insensitively) stored more than once."""
    groups = _group(records, lambda r: _text(r, 'site').lower())
    return [SiteGroup(site=_text(members[0], 'site'), count=len(members), records=members)
            for members in groups.values() if len(members) > 1]


def find_duplicate_passwords(records: Sequence[Any]) -> List[PasswordGroup]:
    """Passwords (compared exactly) used by more than one record."""
    groups = _group(records, lambda r: _text(r, 'password'))
    return [PasswordGroup(password=password, count=len(members), records=members)
            for password, members in groups.items() if len(members) > 1]


def is_weak_password(password: str) -> bool:
    """True unless the password is long enough and contains every character class."""
    password = password or ""
    return (
        len(password) < config.WEAK_PASSWORD_MIN_LENGTH
        or not UPPERCASE.search(password)
        or not LOWERCASE.search(password)
        or not DIGIT.search(password)
        or not SPECIAL.search(password)
    )


def find_weak_passwords(records: Sequence[Any]) -> List[Any]:
    return [r for r in records if is_weak_password(_text(r, 'password'))]


def is_incomplete(record: Any) -> bool:
    return any(not _text(record, name).strip() for name in ('site', 'username', 'password'))


def find_incomplete_entries(records: Sequence[Any]) -> List[Any]:
    return [r for r in records if is_incomplete(r)]


def detailed_analysis(records: Sequence[Any]) -> SecurityReport:
    return SecurityReport(
        duplicate_sites=find_duplicate_sites(records),
        duplicate_passwords=find_duplicate_passwords(records),
        weak_passwords=find_weak_passwords(records),
        incomplete_entries=find_incomplete_entries(records),
    )


def analyze(records: Sequence[Any]) -> List[Finding]:
    """
    Summarize the vault as a list of findings.

    One warning per duplicated site, a single critical finding covering
    every reused password, and one warning each for weak and incomplete
    entries when there are any.
    """
    report = detailed_analysis(records)
    findings: List[Finding] = []

    for group in report.duplicate_sites:
        findings.append(Finding(
            kind=FindingKind.DUPLICATE_SITE,
            severity=Severity.WARNING,
            detail=f'Found {group.count} duplicate entries for site "{group.site}"',
            records=tuple(group.records),
        ))

    if report.duplicate_passwords:
        findings.append(Finding(
            kind=FindingKind.DUPLICATE_PASSWORD,
            severity=Severity.CRITICAL,
            detail=f"Found {len(report.duplicate_passwords)} passwords that are used multiple times",
            records=tuple(r for group in report.duplicate_passwords for r in group.records),
        ))

    if report.weak_passwords:
        findings.append(Finding(
            kind=FindingKind.WEAK_PASSWORD,
            severity=Severity.WARNING,
            detail=f"Detected {len(report.weak_passwords)} weak passwords",
            records=tuple(report.weak_passwords),
        ))

    if report.incomplete_entries:
        findings.append(Finding(
            kind=FindingKind.INCOMPLETE_ENTRY,
            severity=Severity.WARNING,
            detail=f"Found {len(report.incomplete_entries)} entries with missing information",
            records=tuple(report.incomplete_entries),
        ))

    return findings


def requires_acknowledgement(findings: Sequence[Finding]) -> bool:
    """True when a critical finding must be acknowledged before continuing."""
    return any(f.is_critical for f in findings)
