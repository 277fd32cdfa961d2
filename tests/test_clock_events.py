from datetime import date, datetime

import pytest

from juice_pos.clock import business_date_for, now
from juice_pos.events import ChangeFeed

from tests.conftest import IST


def test_now_is_timezone_aware():
    assert now().tzinfo is not None


def test_midnight_cutover_keeps_calendar_day():
    assert business_date_for(datetime(2024, 3, 15, 0, 5, tzinfo=IST)) == date(2024, 3, 15)


def test_late_sales_count_towards_previous_day():
    moment = datetime(2024, 3, 15, 2, 30, tzinfo=IST)

    assert business_date_for(moment, cutover_hour=3) == date(2024, 3, 14)
    assert business_date_for(moment.replace(hour=3), cutover_hour=3) == date(2024, 3, 15)


def test_cutover_hour_out_of_range():
    with pytest.raises(ValueError):
        business_date_for(datetime(2024, 3, 15, tzinfo=IST), cutover_hour=24)


def test_feed_delivers_to_table_and_wildcard_subscribers():
    feed = ChangeFeed()
    bills, everything = [], []
    feed.subscribe("bills", bills.append)
    feed.subscribe("*", everything.append)

    feed.publish("bills", "INSERT")
    feed.publish("menu_items", "UPDATE")

    assert [event.action for event in bills] == ["INSERT"]
    assert [event.table for event in everything] == ["bills", "menu_items"]


def test_closed_subscription_stops_receiving():
    feed = ChangeFeed()
    seen = []
    subscription = feed.subscribe("bills", seen.append)

    subscription.close()
    subscription.close()
    feed.publish("bills")

    assert seen == []


def test_failing_subscriber_does_not_block_others():
    feed = ChangeFeed()
    seen = []

    def explode(event):
        raise RuntimeError("boom")

    feed.subscribe("bills", explode)
    feed.subscribe("bills", seen.append)

    feed.publish("bills")

    assert len(seen) == 1
