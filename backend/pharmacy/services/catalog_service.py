# Overview: Service-layer operations for the catalog; products and categories.

from __future__ import annotations

from ..domain import Category, Product
from ..errors import ErrorKind, Result
from ..repositories import Repositories


class CatalogService:
    def __init__(self, repos: Repositories):
        self._repos = repos

    # Views

    def product_view(self, product: Product) -> dict:
        """Product JSON with the name of its (enabled) category, if any."""
        category = None
        if product.category_id is not None:
            category = self._repos.categories.get(product.category_id)
        return product.to_dict(category.name if category else None)

    def product_views(self, products: list[Product]) -> list[dict]:
        names = {c.id: c.name for c in self._repos.categories.list()}
        return [p.to_dict(names.get(p.category_id)) for p in products]

    # Products

    def list_products(
        self,
        *,
        category_id: int | None = None,
        search: str | None = None,
        include_disabled: bool = False,
    ) -> list[Product]:
        return self._repos.products.list(
            category_id=category_id,
            search=search,
            include_disabled=include_disabled,
        )

    def get_product(self, product_id: int, *, include_disabled: bool = False) -> Result[Product]:
        product = self._repos.products.get(product_id, include_disabled=include_disabled)
        if product is None:
            return Result.failure(ErrorKind.PRODUCT_NOT_FOUND, "Product not found", productId=product_id)
        return Result.success(product)

    def _check_category(self, fields: dict) -> Result | None:
        category_id = fields.get("category_id")
        if category_id is not None and self._repos.categories.get(category_id) is None:
            return Result.failure(ErrorKind.CATEGORY_NOT_FOUND, "Category not found", categoryId=category_id)
        return None

    def create_product(self, fields: dict) -> Result[Product]:
        def _op():
            failed = self._check_category(fields)
            if failed:
                return failed
            return Result.success(self._repos.products.add(fields))

        return self._repos.run_atomic(_op)

    def update_product(self, product_id: int, changes: dict) -> Result[Product]:
        def _op():
            failed = self._check_category(changes)
            if failed:
                return failed
            product = self._repos.products.update(product_id, changes)
            if product is None:
                return Result.failure(ErrorKind.PRODUCT_NOT_FOUND, "Product not found", productId=product_id)
            return Result.success(product)

        return self._repos.run_atomic(_op)

    def delete_product(self, product_id: int) -> Result[Product]:
        """Soft delete: the row stays so past orders keep their reference."""
        return self.update_product(product_id, {"enabled": False})

    # Categories

    def list_categories(self, *, include_disabled: bool = False) -> list[Category]:
        return self._repos.categories.list(include_disabled=include_disabled)

    def get_category(self, category_id: int, *, include_disabled: bool = False) -> Result[Category]:
        category = self._repos.categories.get(category_id, include_disabled=include_disabled)
        if category is None:
            return Result.failure(ErrorKind.CATEGORY_NOT_FOUND, "Category not found", categoryId=category_id)
        return Result.success(category)

    def create_category(self, fields: dict) -> Result[Category]:
        return self._repos.run_atomic(lambda: Result.success(self._repos.categories.add(fields)))

    def update_category(self, category_id: int, changes: dict) -> Result[Category]:
        def _op():
            category = self._repos.categories.update(category_id, changes)
            if category is None:
                return Result.failure(ErrorKind.CATEGORY_NOT_FOUND, "Category not found", categoryId=category_id)
            return Result.success(category)

        return self._repos.run_atomic(_op)

    def delete_category(self, category_id: int) -> Result[Category]:
        # Products keep their category_id and render without a category name
        return self.update_category(category_id, {"enabled": False})
