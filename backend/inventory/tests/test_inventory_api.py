"""
API tests for the inventory ledger endpoints.
"""
import pytest
from decimal import Decimal

from inventory.models import Ingredient, InventoryMovement, Label
from inventory.services import InventoryService

LabelType = Label.LabelType


@pytest.fixture
def flour(make_ingredient):
    return make_ingredient(name="Farina", current_stock=Decimal("10"), min_stock_threshold=Decimal("1"))


@pytest.mark.django_db
class TestStockEndpoints:

    def test_ingredient_list_scoped_to_tenant(self, staff_client, flour, make_ingredient, tenant_b):
        make_ingredient(name="Altro", tenant=tenant_b)

        response = staff_client.get("/api/inventory/ingredients/")

        assert response.status_code == 200
        assert [item["name"] for item in response.data] == ["Farina"]
        assert response.data[0]["available_stock"] == "10.000"

    def test_stock_status(self, staff_client, flour):
        response = staff_client.get(f"/api/inventory/ingredients/{flour.pk}/stock/")

        assert response.status_code == 200
        assert response.data["available_stock"] == "10.000"
        assert response.data["is_low_stock"] is False

    def test_low_stock(self, staff_client, flour, make_ingredient):
        make_ingredient(name="Lievito", current_stock=Decimal("0.5"), min_stock_threshold=Decimal("1"))

        response = staff_client.get("/api/inventory/ingredients/low-stock/")

        assert response.status_code == 200
        assert [item["name"] for item in response.data] == ["Lievito"]

    def test_restock(self, staff_client, flour):
        response = staff_client.post(
            f"/api/inventory/ingredients/{flour.pk}/restock/",
            {"quantity": "2.5", "notes": "Fornitore"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["movement_type"] == "restocked"
        flour.refresh_from_db()
        assert flour.current_stock == Decimal("12.5")

    def test_restock_requires_staff(self, user_client, flour):
        response = user_client.post(
            f"/api/inventory/ingredients/{flour.pk}/restock/", {"quantity": "1"}, format="json"
        )

        assert response.status_code == 403

    def test_restock_rejects_zero(self, staff_client, flour):
        response = staff_client.post(
            f"/api/inventory/ingredients/{flour.pk}/restock/", {"quantity": "0"}, format="json"
        )

        assert response.status_code == 400


@pytest.mark.django_db
class TestLabelEndpoints:

    def test_allocate(self, staff_client, flour, make_label):
        label = make_label(LabelType.INGREDIENT)

        response = staff_client.post(
            f"/api/inventory/labels/{label.pk}/allocate/",
            {"ingredient_id": flour.pk, "quantity": "4"},
            format="json",
        )

        assert response.status_code == 201
        flour.refresh_from_db()
        assert flour.allocated_stock == Decimal("4")
        assert flour.labeled_stock == Decimal("4")

        allocations = staff_client.get(f"/api/inventory/labels/{label.pk}/allocations/")
        assert allocations.status_code == 200
        assert allocations.data[0]["allocated_quantity"] == "4.000"

    def test_allocate_insufficient_stock_returns_409(self, staff_client, make_ingredient, make_label):
        ingredient = make_ingredient(name="Burro", current_stock=Decimal("10"), allocated_stock=Decimal("6"))
        label = make_label(LabelType.DEFROSTED)

        response = staff_client.post(
            f"/api/inventory/labels/{label.pk}/allocate/",
            {"ingredient_id": ingredient.pk, "quantity": "5"},
            format="json",
        )

        assert response.status_code == 409
        assert Decimal(response.data["available"]) == Decimal("4")
        assert Decimal(response.data["requested"]) == Decimal("5")

    def test_allocate_other_tenant_ingredient_not_found(self, staff_client, make_ingredient, make_label, tenant_b):
        foreign = make_ingredient(name="Altrui", tenant=tenant_b, current_stock=Decimal("5"))
        label = make_label()

        response = staff_client.post(
            f"/api/inventory/labels/{label.pk}/allocate/",
            {"ingredient_id": foreign.pk, "quantity": "1"},
            format="json",
        )

        assert response.status_code == 404

    def test_discard(self, staff_client, flour, make_label):
        label = make_label(LabelType.INGREDIENT)
        InventoryService.allocate(flour, label, Decimal("3"))

        response = staff_client.post(f"/api/inventory/labels/{label.pk}/discard/")

        assert response.status_code == 200
        assert response.data["status"] == "discarded"
        flour.refresh_from_db()
        assert flour.current_stock == Decimal("7")

    def test_consume_twice_is_rejected(self, staff_client, flour, make_label):
        label = make_label(LabelType.DEFROSTED)
        InventoryService.allocate(flour, label, Decimal("3"))

        assert staff_client.post(f"/api/inventory/labels/{label.pk}/consume/").status_code == 200
        assert staff_client.post(f"/api/inventory/labels/{label.pk}/consume/").status_code == 400

    def test_release(self, staff_client, flour, make_label):
        label = make_label(LabelType.DEFROSTED)
        InventoryService.allocate(flour, label, Decimal("3"))

        response = staff_client.post(f"/api/inventory/labels/{label.pk}/release/")

        assert response.status_code == 200
        assert response.data["status"] == "active"
        flour.refresh_from_db()
        assert flour.allocated_stock == Decimal("0")

    def test_allocate_recipe(self, staff_client, tenant_a, flour, make_label):
        from inventory.models import Recipe, RecipeIngredient

        recipe = Recipe.all_objects.create(tenant=tenant_a, name="Pane", portions=1)
        RecipeIngredient.objects.create(recipe=recipe, ingredient=flour, quantity=Decimal("0.5"), unit="kg")
        label = make_label(LabelType.RECIPE)

        response = staff_client.post(
            f"/api/inventory/labels/{label.pk}/allocate-recipe/",
            {"recipe_id": recipe.pk, "portions": "4"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data[0]["movement_type"] == "consumed"
        flour.refresh_from_db()
        assert flour.current_stock == Decimal("8")


@pytest.mark.django_db
class TestMovementLog:

    def test_filter_by_movement_type(self, staff_client, flour, make_label):
        InventoryService.restock(flour, Decimal("1"))
        InventoryService.allocate(flour, make_label(LabelType.DEFROSTED), Decimal("2"))

        response = staff_client.get("/api/inventory/movements/", {"movement_type": "allocated"})

        assert response.status_code == 200
        assert len(response.data) == 1
        assert response.data[0]["movement_type"] == "allocated"

    def test_filter_by_ingredient(self, staff_client, flour, make_ingredient):
        other = make_ingredient(name="Sale")
        InventoryService.restock(flour, Decimal("1"))
        InventoryService.restock(other, Decimal("1"))

        response = staff_client.get("/api/inventory/movements/", {"ingredient": other.pk})

        assert [item["ingredient_name"] for item in response.data] == ["Sale"]

    def test_movements_are_tenant_scoped(self, api_client, staff_user, flour, tenant_b):
        InventoryService.restock(flour, Decimal("1"))
        api_client.force_authenticate(user=staff_user)
        api_client.credentials(HTTP_X_TENANT=tenant_b.slug)

        response = api_client.get("/api/inventory/movements/")

        assert response.status_code == 200
        assert response.data == []
        assert InventoryMovement.all_objects.count() == 1
        assert Ingredient.all_objects.count() == 1
