"""Tests for link/unlink inference on updates."""
from app.changelog.diff import EntityState
from app.changelog.inference import changed_relation_fields, infer_operation, relation_changes


def state(values, previous):
    return EntityState(
        model_name="item",
        values=values,
        previous=previous,
        changed=tuple(previous),
        relation_fields=frozenset({"category_id", "department_id"}),
        identity=1,
    )


def test_scalar_update_stays_an_update():
    assert infer_operation(state({"name": "Fork"}, {"name": "Spoon"}), "update") == "update"


def test_relation_gaining_a_value_is_a_link():
    assert infer_operation(state({"category_id": 5}, {"category_id": None}), "update") == "link"


def test_relation_cleared_is_an_unlink():
    assert infer_operation(state({"category_id": None}, {"category_id": 5}), "update") == "unlink"


def test_repointed_relation_is_a_link():
    assert infer_operation(state({"department_id": 3}, {"department_id": 2}), "update") == "link"


def test_declared_create_and_delete_are_kept():
    relation_change = state({"category_id": 5}, {"category_id": None})

    assert infer_operation(relation_change, "create") == "create"
    assert infer_operation(relation_change, "delete") == "delete"


def test_first_changed_relation_decides():
    changed = state(
        {"category_id": None, "department_id": 3},
        {"category_id": 5, "department_id": 2},
    )

    assert changed_relation_fields(changed) == ["category_id", "department_id"]
    assert infer_operation(changed, "update") == "unlink"


def test_relation_changes_lists_every_relation_field():
    changed = state(
        {"name": "Fork", "category_id": None, "department_id": 3},
        {"name": "Spoon", "category_id": 5, "department_id": 2},
    )

    assert relation_changes(changed) == [("category_id", "unlink"), ("department_id", "link")]
