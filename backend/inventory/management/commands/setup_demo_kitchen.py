"""
Django management command to set up a demo restaurant kitchen.
Creates ingredients, a semilavorato, a dish recipe and opening stock.
"""
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from inventory.models import Dish, Ingredient, Recipe, RecipeIngredient
from inventory.services import InventoryService
from tenant.models import Tenant

DEMO_INGREDIENTS = [
    # name, unit, cost per unit, yield %, opening stock, low-stock threshold
    ("Pomodori pelati", "kg", Decimal("2.40"), Decimal("100"), Decimal("20"), Decimal("5")),
    ("Cipolle", "kg", Decimal("1.20"), Decimal("85"), Decimal("10"), Decimal("2")),
    ("Olio extravergine", "l", Decimal("9.50"), Decimal("100"), Decimal("5"), Decimal("1")),
    ("Basilico", "kg", Decimal("28.00"), Decimal("70"), Decimal("0.5"), Decimal("0.1")),
    ("Spaghetti", "kg", Decimal("1.80"), Decimal("100"), Decimal("25"), Decimal("5")),
]


class Command(BaseCommand):
    help = 'Set up demo ingredients, recipes and stock for a restaurant'

    def add_arguments(self, parser):
        parser.add_argument('tenant_slug', help='Slug of the restaurant to populate')
        parser.add_argument(
            '--sales-point',
            dest='sales_point_id',
            help='Cassa in Cloud sales point id to link when creating the restaurant',
        )

    def handle(self, *args, **options):
        slug = options['tenant_slug']
        self.stdout.write(self.style.SUCCESS(f'Setting up demo kitchen for {slug}...'))

        with transaction.atomic():
            tenant, created = Tenant.objects.get_or_create(
                slug=slug,
                defaults={
                    'name': slug.replace('-', ' ').title(),
                    'sales_point_id': options.get('sales_point_id'),
                },
            )
            if not tenant.is_active:
                raise CommandError(f'Tenant {slug} is inactive')
            if created:
                self.stdout.write(f'Created restaurant: {tenant.name}')

            ingredients = {}
            for name, unit, cost, yield_percentage, stock, threshold in DEMO_INGREDIENTS:
                ingredient, ingredient_created = Ingredient.all_objects.get_or_create(
                    tenant=tenant,
                    name=name,
                    defaults={
                        'unit': unit,
                        'cost_per_unit': cost,
                        'yield_percentage': yield_percentage,
                        'min_stock_threshold': threshold,
                    },
                )
                ingredients[name] = ingredient
                # Opening stock goes through the ledger so it appears in the movement log
                if ingredient_created:
                    InventoryService.restock(ingredient, stock, notes='Demo opening stock')

            sugo, sugo_created = Recipe.all_objects.get_or_create(
                tenant=tenant,
                name='Sugo al pomodoro',
                defaults={'portions': 10, 'is_semilavorato': True},
            )
            if sugo_created:
                lines = [
                    ('Pomodori pelati', Decimal('1.5'), 'kg'),
                    ('Cipolle', Decimal('200'), 'g'),
                    ('Olio extravergine', Decimal('5'), 'cucchiaio'),
                    ('Basilico', Decimal('20'), 'g'),
                ]
                for position, (name, quantity, unit) in enumerate(lines):
                    RecipeIngredient.objects.create(
                        recipe=sugo,
                        ingredient=ingredients[name],
                        quantity=quantity,
                        unit=unit,
                        position=position,
                    )

            spaghetti, spaghetti_created = Recipe.all_objects.get_or_create(
                tenant=tenant,
                name='Spaghetti al pomodoro',
                defaults={'portions': 1},
            )
            if spaghetti_created:
                RecipeIngredient.objects.create(
                    recipe=spaghetti, ingredient=ingredients['Spaghetti'],
                    quantity=Decimal('120'), unit='g', position=0,
                )
                RecipeIngredient.objects.create(
                    recipe=spaghetti, semilavorato=sugo, is_semilavorato=True,
                    quantity=Decimal('1'), position=1,
                )

            Dish.all_objects.get_or_create(
                tenant=tenant,
                name='Spaghetti al pomodoro',
                defaults={
                    'recipe': spaghetti,
                    'selling_price': Decimal('11.00'),
                    'external_id': 'DEMO-SPAGHETTI',
                },
            )

        self.stdout.write(
            self.style.SUCCESS(f'Demo kitchen ready: {len(ingredients)} ingredients, 2 recipes, 1 dish')
        )
