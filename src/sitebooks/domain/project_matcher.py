"""Project and client matching for QuickBooks rows."""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sitebooks.config import ImportSettings
from sitebooks.domain.entities import Client, Project, ProjectAlias
from sitebooks.domain.payee_matcher import (
    AUTO_MATCH_THRESHOLD,
    SUGGESTION_FLOOR,
    jaro_winkler_similarity,
    normalize_business_name,
    token_similarity,
)

PROJECT_FUZZY_THRESHOLD = 85.0
PROJECT_SUGGESTION_FLOOR = 50.0

_PROJECT_NUMBER = re.compile(r"^(\d{2,4}-\d{2,4})")

ALIAS_MATCH_TYPES = ("exact", "starts_with", "contains")


@dataclass(frozen=True)
class ProjectMatchResult:
    project_id: int
    confidence: float
    match_type: str


@dataclass(frozen=True)
class ClientMatch:
    client: Client
    confidence: float
    matched_field: str


@dataclass(frozen=True)
class ClientMatchResult:
    qb_name: str
    best_match: Optional[ClientMatch] = None
    suggestions: list[ClientMatch] = field(default_factory=list)


def fuzzy_match_project(
    qb_project: Optional[str],
    projects: Iterable[Project],
    aliases: Iterable[ProjectAlias] = (),
) -> Optional[ProjectMatchResult]:
    """Match a "Project/WO #" value against projects and their aliases.

    Tried in order: project number, project name, exact alias, starts_with
    alias, contains alias, Jaro-Winkler on the project number (>= 85) and
    finally a leading "NN-NNN" project number pattern. Returns None when
    nothing matches; the caller files the row under the unassigned project.
    """
    if not qb_project or not qb_project.strip():
        return None

    projects = list(projects)
    normalized = qb_project.strip().lower()

    for project in projects:
        if project.project_number.strip().lower() == normalized:
            return ProjectMatchResult(project.id, 100.0, "exact_number")

    for project in projects:
        if project.project_name.strip().lower() == normalized:
            return ProjectMatchResult(project.id, 100.0, "exact_name")

    active = [a for a in aliases if a.is_active]
    alphanumeric = re.sub(r"[^a-z0-9]", "", normalized)

    for alias in active:
        if alias.match_type == "exact" and normalized == alias.alias.strip().lower():
            return ProjectMatchResult(alias.project_id, 95.0, "alias_exact")
    for alias in active:
        if alias.match_type == "starts_with" and alphanumeric.startswith(alias.alias.strip().lower()):
            return ProjectMatchResult(alias.project_id, 90.0, "alias_starts_with")
    for alias in active:
        if alias.match_type == "contains" and alias.alias.strip().lower() in alphanumeric:
            return ProjectMatchResult(alias.project_id, 85.0, "alias_contains")

    best: Optional[ProjectMatchResult] = None
    for project in projects:
        similarity = jaro_winkler_similarity(normalized, project.project_number.strip().lower()) * 100
        if similarity >= PROJECT_FUZZY_THRESHOLD and (best is None or similarity > best.confidence):
            best = ProjectMatchResult(project.id, round(similarity), "fuzzy")
    if best is not None:
        return best

    pattern = _PROJECT_NUMBER.match(qb_project.strip())
    if pattern:
        extracted = pattern.group(1).lower()
        for project in projects:
            if project.project_number.strip().lower() == extracted:
                return ProjectMatchResult(project.id, 80.0, "regex")

    return None


def suggest_projects(qb_project: str, projects: Iterable[Project], limit: int = 3) -> list[tuple[Project, float]]:
    """Closest projects by number for an unmatched value."""
    wanted = qb_project.strip().lower()
    scored = []
    for project in projects:
        similarity = round(jaro_winkler_similarity(wanted, project.project_number.strip().lower()) * 100)
        if similarity >= PROJECT_SUGGESTION_FLOOR:
            scored.append((project, similarity))
    scored.sort(key=lambda item: (-item[1], item[0].project_number))
    return scored[:limit]


def _client_score(qb_name: str, candidate: str) -> float:
    return max(
        jaro_winkler_similarity(normalize_business_name(qb_name), normalize_business_name(candidate)) * 100,
        token_similarity(qb_name, candidate) * 100,
    )


def fuzzy_match_client(
    qb_name: Optional[str],
    clients: Iterable[Client],
    settings: Optional[ImportSettings] = None,
) -> ClientMatchResult:
    """Match an invoice Name against client and company names."""
    floor = settings.suggestion_floor if settings else SUGGESTION_FLOOR
    threshold = settings.auto_match_threshold if settings else AUTO_MATCH_THRESHOLD
    if not qb_name or not qb_name.strip():
        return ClientMatchResult(qb_name=qb_name or "")

    normalized = normalize_business_name(qb_name)
    suggestions: list[ClientMatch] = []
    best: Optional[ClientMatch] = None

    for client in clients:
        if normalized == normalize_business_name(client.client_name):
            return ClientMatchResult(qb_name, ClientMatch(client, 100.0, "client_name"))
        if client.company_name and normalized == normalize_business_name(client.company_name):
            return ClientMatchResult(qb_name, ClientMatch(client, 100.0, "company_name"))

        client_score = _client_score(qb_name, client.client_name)
        company_score = _client_score(qb_name, client.company_name) if client.company_name else 0.0
        top = max(client_score, company_score)
        matched_field = "company_name" if company_score > client_score else "client_name"
        candidate = ClientMatch(client, round(top), matched_field)

        if top >= floor:
            suggestions.append(candidate)
        if top >= threshold and (best is None or top > best.confidence):
            best = candidate

    suggestions.sort(key=lambda m: (-m.confidence, m.client.client_name.lower()))
    if best is not None:
        suggestions = [s for s in suggestions if s.client.id != best.client.id][:3]
    else:
        suggestions = suggestions[:5]
    return ClientMatchResult(qb_name, best, suggestions)
