"""Tests for storefront.services.catalog: validation, image delegation and persistence."""

import asyncio
import io
import tempfile
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import UploadFile
from sqlalchemy.exc import OperationalError
from starlette.datastructures import Headers

from storefront.core.database import Database
from storefront.core.errors import (
    FieldValidationError,
    ProductNotFoundError,
    UnsupportedMediaTypeError,
)
from storefront.models import Product
from storefront.services import catalog
from storefront.services.images import ImageStore, LocalImageStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
IMAGE_URL = "/uploads/images/1700000000000-abcd1234.png"


def _upload(filename: str = "mouse.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(PNG_BYTES),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def _fields(**overrides: object) -> dict:
    fields = {
        "title": "Mouse",
        "details": "Wireless",
        "price": "19.99",
        "rating": "4",
        "categories": "Accessories,Electronics",
    }
    fields.update(overrides)
    return fields


class CatalogTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.database = Database("sqlite://")
        self.database.create_all()
        self.db = self.database.session()
        self.addCleanup(self.database.dispose)
        self.addCleanup(self.db.close)
        self.image_store = MagicMock(spec=ImageStore)
        self.image_store.save = AsyncMock(return_value=IMAGE_URL)
        self.image_store.discard = AsyncMock()

    def _create(self, fields: dict | None = None, image: UploadFile | None = None, **kwargs) -> Product:
        return asyncio.run(
            catalog.create_product(
                self.db,
                self.image_store,
                _fields() if fields is None else fields,
                _upload() if image is None else image,
                **kwargs,
            )
        )

    def _count(self) -> int:
        return self.db.query(Product).count()


class TestCreateProduct(CatalogTestCase):
    def test_creates_product(self) -> None:
        product = self._create()
        self.assertEqual(product.title, "Mouse")
        self.assertEqual(product.details, "Wireless")
        self.assertEqual(product.price, 19.99)
        self.assertEqual(product.rating_rate, 4.0)
        self.assertEqual(product.rating_count, 1)
        self.assertEqual(product.categories, ["Accessories", "Electronics"])
        self.assertEqual(product.image, IMAGE_URL)
        self.assertIsNotNone(product.created_at)
        self.image_store.save.assert_awaited_once()
        self.assertEqual(self.image_store.save.await_args.args[1], "images")

    def test_missing_required_field_persists_nothing(self) -> None:
        for name in ("title", "details", "price", "rating"):
            with self.subTest(field=name):
                fields = _fields()
                del fields[name]
                with self.assertRaises(FieldValidationError) as ctx:
                    self._create(fields)
                self.assertIn(name, ctx.exception.fields)
                self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(self._count(), 0)
        self.image_store.save.assert_not_awaited()

    def test_blank_field_counts_as_missing(self) -> None:
        with self.assertRaises(FieldValidationError) as ctx:
            self._create(_fields(title="   ", details=""))
        self.assertEqual(ctx.exception.fields, ["title", "details"])

    def test_missing_image_persists_nothing(self) -> None:
        with self.assertRaises(FieldValidationError) as ctx:
            asyncio.run(catalog.create_product(self.db, self.image_store, _fields(), None))
        self.assertEqual(ctx.exception.fields, ["image"])
        with self.assertRaises(FieldValidationError):
            self._create(image=_upload(filename=""))
        self.assertEqual(self._count(), 0)

    def test_invalid_numbers_rejected(self) -> None:
        for overrides in ({"price": "-1"}, {"price": "abc"}, {"rating": "5.5"}, {"rating": "-0.1"}, {"price": "nan"}):
            with self.subTest(**overrides):
                with self.assertRaises(FieldValidationError):
                    self._create(_fields(**overrides))
        self.assertEqual(self._count(), 0)

    def test_rating_zero_is_present(self) -> None:
        product = self._create(_fields(rating="0"))
        self.assertEqual(product.rating_rate, 0.0)
        self.assertEqual(product.rating_count, 1)

    def test_categories_list_input(self) -> None:
        product = self._create(_fields(categories=[" Shoes ", "Sale", "Shoes", ""]))
        self.assertEqual(product.categories, ["Shoes", "Sale"])

    def test_categories_optional(self) -> None:
        fields = _fields()
        del fields["categories"]
        self.assertEqual(self._create(fields).categories, [])

    def test_unknown_category_rejected_when_allow_list_set(self) -> None:
        with self.assertRaises(FieldValidationError) as ctx:
            self._create(_fields(categories="Electronics,Toys"), allowed_categories=["Electronics"])
        self.assertIn("Toys", ctx.exception.message)
        self.assertEqual(self._count(), 0)

    def test_unsupported_media_persists_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = LocalImageStore(tmp, "/uploads", max_bytes=1024)
            with self.assertRaises(UnsupportedMediaTypeError):
                asyncio.run(
                    catalog.create_product(
                        self.db,
                        store,
                        _fields(),
                        _upload(filename="shoe.exe", content_type="application/octet-stream"),
                    )
                )
        self.assertEqual(self._count(), 0)


class TestNormalizeCategories(unittest.TestCase):
    def test_trims_dedupes_and_keeps_order(self) -> None:
        self.assertEqual(
            catalog.normalize_categories(" b, a ,b,, c "),
            ["b", "a", "c"],
        )

    def test_none(self) -> None:
        self.assertEqual(catalog.normalize_categories(None), [])


class TestReadProducts(CatalogTestCase):
    def test_round_trip(self) -> None:
        created = self._create(_fields(categories=" Accessories , Electronics,Accessories"))
        fetched = catalog.get_product(self.db, created.id)
        self.assertEqual(fetched.image, IMAGE_URL)
        self.assertEqual(fetched.categories, ["Accessories", "Electronics"])

    def test_list_in_store_order(self) -> None:
        first = self._create(_fields(title="First"))
        second = self._create(_fields(title="Second"))
        self.assertEqual([p.id for p in catalog.list_products(self.db)], [first.id, second.id])

    def test_get_missing(self) -> None:
        with self.assertRaises(ProductNotFoundError) as ctx:
            catalog.get_product(self.db, 999)
        self.assertEqual(ctx.exception.status_code, 404)


class TestUpdateProduct(CatalogTestCase):
    def test_price_only(self) -> None:
        product = self._create()
        before = (product.title, product.details, product.image, product.rating_rate, product.rating_count, product.categories)
        self.image_store.save.reset_mock()

        updated = asyncio.run(
            catalog.update_product(self.db, self.image_store, product.id, {"price": 9.99})
        )

        self.assertEqual(updated.price, 9.99)
        after = (updated.title, updated.details, updated.image, updated.rating_rate, updated.rating_count, updated.categories)
        self.assertEqual(after, before)
        self.image_store.save.assert_not_awaited()

    def test_blank_fields_are_ignored(self) -> None:
        product = self._create()
        updated = asyncio.run(
            catalog.update_product(
                self.db,
                self.image_store,
                product.id,
                {"title": "", "details": "Bluetooth", "price": "", "rating": "3.5"},
                _upload(filename=""),
            )
        )
        self.assertEqual(updated.title, "Mouse")
        self.assertEqual(updated.details, "Bluetooth")
        self.assertEqual(updated.price, 19.99)
        self.assertEqual(updated.rating_rate, 3.5)
        self.assertEqual(updated.rating_count, 1)

    def test_new_image_replaces_url(self) -> None:
        product = self._create()
        self.image_store.save = AsyncMock(return_value="/uploads/images/new.png")
        updated = asyncio.run(
            catalog.update_product(self.db, self.image_store, product.id, {}, _upload())
        )
        self.assertEqual(updated.image, "/uploads/images/new.png")

    def test_invalid_price_rejected(self) -> None:
        product = self._create()
        with self.assertRaises(FieldValidationError):
            asyncio.run(catalog.update_product(self.db, self.image_store, product.id, {"price": "-3"}))
        self.db.refresh(product)
        self.assertEqual(product.price, 19.99)

    def test_missing_product(self) -> None:
        with self.assertRaises(ProductNotFoundError):
            asyncio.run(catalog.update_product(self.db, self.image_store, 404, {"price": 1}))


class TestDeleteProduct(CatalogTestCase):
    def test_delete_is_idempotent(self) -> None:
        product = self._create()
        product_id = product.id
        self.assertTrue(catalog.delete_product(self.db, product_id))
        with self.assertRaises(ProductNotFoundError):
            catalog.get_product(self.db, product_id)
        self.assertFalse(catalog.delete_product(self.db, product_id))


class TestFailedCommit(CatalogTestCase):
    """A failed commit rolls the session back and discards the image stored for it."""

    def _failing_commit(self):
        return patch.object(
            self.db, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))
        )

    def test_create_discards_image(self) -> None:
        with self._failing_commit(), patch.object(self.db, "rollback", wraps=self.db.rollback) as rollback:
            with self.assertRaises(OperationalError):
                self._create()
        rollback.assert_called_once()
        self.image_store.discard.assert_awaited_once_with(IMAGE_URL)
        self.assertEqual(self._count(), 0)

    def test_update_discards_new_image_and_keeps_stored_values(self) -> None:
        product = self._create()
        self.image_store.save = AsyncMock(return_value="/uploads/images/new.png")
        with self._failing_commit():
            with self.assertRaises(OperationalError):
                asyncio.run(
                    catalog.update_product(
                        self.db, self.image_store, product.id, {"price": "5"}, _upload()
                    )
                )
        self.image_store.discard.assert_awaited_once_with("/uploads/images/new.png")
        self.db.refresh(product)
        self.assertEqual(product.price, 19.99)
        self.assertEqual(product.image, IMAGE_URL)

    def test_update_without_image_discards_nothing(self) -> None:
        product = self._create()
        with self._failing_commit():
            with self.assertRaises(OperationalError):
                asyncio.run(catalog.update_product(self.db, self.image_store, product.id, {"price": "5"}))
        self.image_store.discard.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()
