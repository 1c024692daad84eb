# rbac_admin/core/permission_catalog.py
"""
Permission catalog helpers used by the role editor.

Permission names follow ``action_resource`` or ``action_any_resource``
(e.g. ``view_user``, ``force_delete_any_user``). These pure functions derive
the display grouping from the name alone:

- category: pages / widgets / resources / other (editor tabs)
- model: the resource part, capitalized ("view_any_user" -> "User")
- action label: "View", "View Any", "Force Any", ...
"""
from typing import Any, Iterable

CATEGORIES = ("resources", "pages", "widgets", "other")

# Words stripped from a permission name to find its model
MODEL_NOISE_WORDS = {"view", "create", "update", "delete", "restore", "force", "any", "all"}

# Display order of actions within a model group
ACTION_ORDER = ("view", "create", "update", "restore", "delete", "force")

_RESOURCE_MARKERS = ("create", "update", "delete", "view", "restore", "force", "activate", "deactivate")


def _name(perm: Any) -> str:
    return perm["name"] if isinstance(perm, dict) else perm.name


def permission_category(name: str) -> str:
    name = name.lower()
    if "page" in name:
        return "pages"
    if "widget" in name:
        return "widgets"
    if any(marker in name for marker in _RESOURCE_MARKERS):
        return "resources"
    return "other"


def permission_model(name: str) -> str:
    parts = name.split("_")
    model_parts = [p for p in parts if p.lower() not in MODEL_NOISE_WORDS]
    model = " ".join(model_parts) if model_parts else parts[-1]
    return model[:1].upper() + model[1:].lower()


def permission_action(name: str) -> str | None:
    """First action word of the name, in name order."""
    for part in name.split("_"):
        if part.lower() in ACTION_ORDER:
            return part.lower()
    return None


def permission_action_label(name: str) -> str:
    action = permission_action(name)
    if action is None:
        return name
    label = action.capitalize()
    return f"{label} Any" if "_any_" in name else label


def _action_sort_key(name: str) -> tuple[int, bool]:
    action = permission_action(name)
    index = ACTION_ORDER.index(action) if action else -1
    return index, "_any_" in name


def group_permissions_by_model(perms: Iterable[Any]) -> dict[str, list[Any]]:
    """
    Group permissions (models or dicts with a "name") by model, each group
    ordered view, create, update, restore, delete, force; a plain permission
    sorts before its ``_any_`` variant.
    """
    groups: dict[str, list[Any]] = {}
    for perm in perms:
        groups.setdefault(permission_model(_name(perm)), []).append(perm)
    for items in groups.values():
        items.sort(key=lambda p: _action_sort_key(_name(p)))
    return groups


def group_permissions_by_category(perms: Iterable[Any]) -> dict[str, list[Any]]:
    groups: dict[str, list[Any]] = {category: [] for category in CATEGORIES}
    for perm in perms:
        groups[permission_category(_name(perm))].append(perm)
    return groups


def build_catalog(perms: list[dict]) -> dict[str, list[dict]]:
    """
    Editor view: category -> [{"model", "permissions": [{..., "action_label"}]}].
    """
    catalog: dict[str, list[dict]] = {}
    for category, members in group_permissions_by_category(perms).items():
        catalog[category] = [
            {
                "model": model,
                "permissions": [{**p, "action_label": permission_action_label(p["name"])} for p in items],
            }
            for model, items in group_permissions_by_model(members).items()
        ]
    return catalog
