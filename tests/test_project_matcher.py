"""Tests for project and client matching."""

from datetime import datetime

import pytest

from sitebooks.domain.entities import Client, Project, ProjectAlias
from sitebooks.domain.project_matcher import fuzzy_match_client, fuzzy_match_project, suggest_projects


def _project(project_id, number, name):
    return Project(id=project_id, project_number=number, project_name=name, created_at=datetime(2024, 1, 1))


def _alias(project_id, alias, match_type="exact", is_active=True):
    return ProjectAlias(id=project_id * 10, project_id=project_id, alias=alias,
                        match_type=match_type, is_active=is_active)


@pytest.fixture
def projects():
    return [_project(1, "24-001", "Smith Kitchen Remodel"), _project(2, "24-017", "Jones Deck")]


def test_exact_number(projects):
    result = fuzzy_match_project("24-017", projects)

    assert (result.project_id, result.confidence, result.match_type) == (2, 100.0, "exact_number")


def test_exact_name_ignores_case(projects):
    result = fuzzy_match_project("smith kitchen remodel", projects)

    assert (result.project_id, result.match_type) == (1, "exact_name")


def test_alias_exact(projects):
    result = fuzzy_match_project("Smith Remodel", projects, [_alias(1, "Smith Remodel")])

    assert (result.project_id, result.confidence, result.match_type) == (1, 95.0, "alias_exact")


def test_alias_starts_with(projects):
    result = fuzzy_match_project("Jones - back deck", projects, [_alias(2, "Jones", "starts_with")])

    assert (result.project_id, result.confidence) == (2, 90.0)


def test_alias_contains(projects):
    result = fuzzy_match_project("WO 55 kitchen", projects, [_alias(1, "kitchen", "contains")])

    assert (result.project_id, result.confidence) == (1, 85.0)


def test_inactive_alias_is_ignored(projects):
    assert fuzzy_match_project("Smith Remodel", projects, [_alias(1, "Smith Remodel", is_active=False)]) is None


def test_fuzzy_project_number():
    result = fuzzy_match_project("24-01", [_project(1, "24-001", "Smith Kitchen Remodel")])

    assert result.project_id == 1
    assert result.match_type == "fuzzy"


def test_regex_project_number():
    result = fuzzy_match_project(
        "24-001 Smith Kitchen Remodel Phase 2", [_project(1, "24-001", "Smith Kitchen Remodel")]
    )

    assert (result.project_id, result.confidence, result.match_type) == (1, 80.0, "regex")


def test_no_match(projects):
    assert fuzzy_match_project("Warehouse", projects) is None
    assert fuzzy_match_project("", projects) is None


def test_suggest_projects(projects):
    suggestions = suggest_projects("24-0", projects)

    assert [p.project_number for p, _ in suggestions] == ["24-001", "24-017"]


def _client(client_id, name, company=None):
    return Client(id=client_id, client_name=name, company_name=company, created_at=datetime(2024, 1, 1))


def test_client_exact_and_company():
    clients = [_client(1, "Smith Family"), _client(2, "Bob Jones", "Acme Builders")]

    assert fuzzy_match_client("smith family", clients).best_match.client.id == 1
    company = fuzzy_match_client("Acme Builders Inc", clients).best_match
    assert (company.client.id, company.matched_field) == (2, "company_name")


def test_client_unknown():
    result = fuzzy_match_client("Zed", [_client(1, "Smith Family")])

    assert result.best_match is None
    assert result.suggestions == []
