import uuid

import pytest

from services.errors import InvalidInput, NotFound
from services.inventory_service import (
    add_inventory_item,
    delete_inventory_item,
    list_inventory,
    update_inventory_quantity,
)


def test_add_and_list_inventory(user, other_user, chain, brake_pads):
    add_inventory_item(user.id, chain.id, quantity=2, purchase_price=30)
    add_inventory_item(user.id, brake_pads.id, notes="organic")
    add_inventory_item(other_user.id, chain.id)

    items = list_inventory(user.id)

    assert sorted((i.component_type.name, i.quantity) for i in items) == [("Brake Pads", 1), ("Chain", 2)]


@pytest.mark.parametrize("quantity", [0, -1, None])
def test_quantity_must_be_positive(user, chain, quantity):
    with pytest.raises(InvalidInput):
        add_inventory_item(user.id, chain.id, quantity=quantity)


def test_negative_price_rejected(user, chain):
    with pytest.raises(InvalidInput):
        add_inventory_item(user.id, chain.id, purchase_price=-1)


def test_unknown_component_type(user):
    with pytest.raises(NotFound):
        add_inventory_item(user.id, uuid.uuid4())


def test_update_quantity(user, chain):
    item = add_inventory_item(user.id, chain.id, quantity=1)

    updated = update_inventory_quantity(user.id, item.id, 4)

    assert updated.quantity == 4
    assert [i.quantity for i in list_inventory(user.id)] == [4]


def test_zero_quantity_hides_item_from_listing(user, chain):
    item = add_inventory_item(user.id, chain.id, quantity=2)

    update_inventory_quantity(user.id, item.id, 0)

    assert list_inventory(user.id) == []


def test_update_quantity_rejects_negative(user, chain):
    item = add_inventory_item(user.id, chain.id)
    with pytest.raises(InvalidInput):
        update_inventory_quantity(user.id, item.id, -1)


def test_update_other_users_item_is_not_found(user, other_user, chain):
    item = add_inventory_item(other_user.id, chain.id, quantity=3)

    with pytest.raises(NotFound):
        update_inventory_quantity(user.id, item.id, 0)

    assert [i.quantity for i in list_inventory(other_user.id)] == [3]


def test_delete_inventory_item(user, other_user, chain):
    item = add_inventory_item(user.id, chain.id)

    with pytest.raises(NotFound):
        delete_inventory_item(other_user.id, item.id)

    delete_inventory_item(user.id, item.id)

    assert list_inventory(user.id) == []
    with pytest.raises(NotFound):
        delete_inventory_item(user.id, item.id)
