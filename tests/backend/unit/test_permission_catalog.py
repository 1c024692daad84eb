"""
Unit tests for core.permission_catalog (role editor grouping).
"""
import pytest

from rbac_admin.core.permission_catalog import (
    build_catalog,
    group_permissions_by_category,
    group_permissions_by_model,
    permission_action_label,
    permission_category,
    permission_model,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("view_user", "User"),
        ("view_any_user", "User"),
        ("force_delete_any_user", "User"),
        ("create_role", "Role"),
        ("view_page_dashboard", "Page dashboard"),
        ("view_any", "Any"),
    ],
)
def test_permission_model(name, expected):
    assert permission_model(name) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("view_page_dashboard", "pages"),
        ("view_stats_widget", "widgets"),
        ("delete_any_user", "resources"),
        ("activate_user", "resources"),
        ("export_reports", "other"),
    ],
)
def test_permission_category(name, expected):
    assert permission_category(name) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("view_user", "View"),
        ("view_any_user", "View Any"),
        ("force_delete_any_user", "Force Any"),
        ("export_reports", "export_reports"),
    ],
)
def test_permission_action_label(name, expected):
    assert permission_action_label(name) == expected


def test_group_by_model_orders_actions():
    names = [
        "force_delete_user",
        "delete_any_user",
        "view_any_user",
        "create_user",
        "delete_user",
        "view_user",
        "restore_user",
        "update_user",
        "view_role",
    ]
    groups = group_permissions_by_model([{"name": n} for n in names])
    assert list(groups) == ["User", "Role"]
    assert [p["name"] for p in groups["User"]] == [
        "view_user",
        "view_any_user",
        "create_user",
        "update_user",
        "restore_user",
        "delete_user",
        "delete_any_user",
        "force_delete_user",
    ]


def test_group_by_category_always_has_every_tab():
    groups = group_permissions_by_category([{"name": "view_user"}])
    assert set(groups) == {"resources", "pages", "widgets", "other"}
    assert groups["resources"] == [{"name": "view_user"}]
    assert groups["pages"] == []


def test_build_catalog_adds_action_labels():
    catalog = build_catalog([{"id": 1, "name": "view_any_role"}, {"id": 2, "name": "view_role"}])
    [group] = catalog["resources"]
    assert group["model"] == "Role"
    assert [(p["name"], p["action_label"]) for p in group["permissions"]] == [
        ("view_role", "View"),
        ("view_any_role", "View Any"),
    ]
