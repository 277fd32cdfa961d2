import asyncio
from decimal import Decimal

from PIL import Image

from juice_pos.billing_screen import BillingScreen
from juice_pos.constant import DEFAULT_CATEGORIES
from juice_pos.dashboard_screen import DashboardScreen
from juice_pos.errors import BackendError
from juice_pos.history_screen import HistoryScreen
from juice_pos.menu_screen import MenuScreen
from juice_pos.receipt_app import JuicePosApp


def make_app(tmp_path, clock):
    return JuicePosApp(
        db_path=tmp_path / "pos.db",
        clock=clock,
        image_root=tmp_path / "images",
        print_receipts=False,
    )


def test_function_keys_switch_screens(tmp_path, clock):
    app = make_app(tmp_path, clock)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            assert isinstance(app.screen, BillingScreen)
            for key, screen_type in [
                ("f1", DashboardScreen),
                ("f2", MenuScreen),
                ("f4", HistoryScreen),
                ("f3", BillingScreen),
            ]:
                await pilot.press(key)
                await pilot.pause()
                assert isinstance(app.screen, screen_type)

    asyncio.run(scenario())


def test_default_categories_seeded(tmp_path, clock):
    app = make_app(tmp_path, clock)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            assert [c.name for c in app.category_store.categories()] == DEFAULT_CATEGORIES

    asyncio.run(scenario())


def test_cash_payment_creates_bill_and_clears_cart(tmp_path, clock):
    app = make_app(tmp_path, clock)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            app.menu_store.add_menu_item("Orange Juice", "60")
            await pilot.pause()
            screen = app.screen
            assert isinstance(screen, BillingScreen)

            await pilot.press("enter", "enter", "a", "c")
            await app.workers.wait_for_complete()
            await pilot.pause()

            bills = app.bill_store.today_bills()
            assert len(bills) == 1
            assert bills[0].total_amount == Decimal("130.00")
            assert screen.cart == []
            assert screen.apply_parcel_to_all is False

    asyncio.run(scenario())


def test_empty_cart_payment_is_rejected(tmp_path, clock):
    app = make_app(tmp_path, clock)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            await pilot.press("u")
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert app.bill_store.today_bills() == []

    asyncio.run(scenario())


def test_store_failure_on_screen_shows_error_and_keeps_running(tmp_path, clock, monkeypatch):
    app = make_app(tmp_path, clock)

    def locked(*args, **kwargs):
        raise BackendError("database is locked")

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            app.menu_store.add_menu_item("Orange Juice", "60")
            await pilot.pause()
            await pilot.press("enter", "enter", "c")
            await app.workers.wait_for_complete()
            await pilot.pause()

            monkeypatch.setattr(app.backend, "select", locked)
            app.bill_store.invalidate()
            app.menu_store.invalidate()

            await pilot.press("f1")
            await pilot.pause()
            assert app.is_running
            assert isinstance(app.screen, DashboardScreen)

            await pilot.press("f4", "enter")
            await pilot.pause()
            assert app.is_running
            assert isinstance(app.screen, HistoryScreen)

    asyncio.run(scenario())


def test_failed_item_save_discards_uploaded_photo(tmp_path, clock):
    app = make_app(tmp_path, clock)
    photo = tmp_path / "mango.png"
    Image.new("RGB", (8, 8), color=(255, 160, 0)).save(photo)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.pause()
            app.menu_store.add_menu_item("Mango Shake", "80")
            await pilot.press("f2")
            await pilot.pause()
            screen = app.screen
            assert isinstance(screen, MenuScreen)

            url = app.image_store.upload(photo)
            values = {"name": "Mango Shake", "price": "90", "category": None, "image_url": url, "color": None}
            screen._on_new_item({**values, "uploaded_image": url})
            await pilot.pause()
            assert list((tmp_path / "images").iterdir()) == []

            url = app.image_store.upload(photo)
            screen._on_new_item({**values, "name": "Mango Lassi", "image_url": url, "uploaded_image": url})
            await pilot.pause()
            assert len(list((tmp_path / "images").iterdir())) == 1
            assert [item.name for item in app.menu_store.menu_items()] == ["Mango Lassi", "Mango Shake"]

    asyncio.run(scenario())
