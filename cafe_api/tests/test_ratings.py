from datetime import datetime, timezone

import pytest

from cafe_api.app.domain.errors import DuplicateRating, OrderNotFound, RatingOutOfRange
from cafe_api.app.repos_sqlalchemy import SQLUnitOfWork
from cafe_api.app.services.order_builder import Cart, CartLine, OrderBuilder
from cafe_api.app.services.order_service import OrderOrchestrator
from cafe_api.app.services.rating_service import submit_rating
from cafe_api.app.utils.retry import RetryPolicy

NOW = datetime(2025, 1, 14, 13, 0, tzinfo=timezone.utc)


async def _order(uow):
    cart = Cart(
        customer_name="Yanti",
        customer_phone="081399990000",
        table_ref="7",
        items=[CartLine(menu_item_id="kopi-susu", quantity=1)],
    )
    draft = await OrderBuilder(uow, retry=RetryPolicy(attempts=1)).build(cart)
    placement = await OrderOrchestrator(
        uow, retry=RetryPolicy(attempts=1), clock=lambda: NOW
    ).place(draft)
    return placement.order_id


@pytest.mark.anyio
async def test_rating_marks_order_rated(fake_uow):
    order_id = await _order(fake_uow)
    rating = await submit_rating(
        fake_uow,
        order_id,
        5,
        comment="  Kopinya enak ",
        aspects={"food_quality": 5, "speed": 4},
    )
    assert rating.comment == "Kopinya enak"
    assert rating.food_quality == 5
    assert rating.cleanliness is None
    assert (await fake_uow.orders.get(order_id)).rated is True


@pytest.mark.anyio
async def test_second_rating_rejected_and_first_kept(fake_uow):
    order_id = await _order(fake_uow)
    first = await submit_rating(fake_uow, order_id, 4, comment="ok")
    with pytest.raises(DuplicateRating):
        await submit_rating(fake_uow, order_id, 1, comment="changed my mind")

    stored = await fake_uow.ratings.get_for_order(order_id)
    assert stored is first
    assert stored.overall_rating == 4
    assert stored.comment == "ok"


@pytest.mark.anyio
@pytest.mark.parametrize("score", [0, 6, -1])
async def test_overall_out_of_range(fake_uow, score):
    order_id = await _order(fake_uow)
    with pytest.raises(RatingOutOfRange):
        await submit_rating(fake_uow, order_id, score)


@pytest.mark.anyio
async def test_aspect_out_of_range(fake_uow):
    order_id = await _order(fake_uow)
    with pytest.raises(RatingOutOfRange) as exc:
        await submit_rating(fake_uow, order_id, 5, aspects={"cleanliness": 9})
    assert exc.value.params == {"field": "cleanliness"}


@pytest.mark.anyio
async def test_unknown_order(fake_uow):
    with pytest.raises(OrderNotFound):
        await submit_rating(fake_uow, "missing", 5)


@pytest.mark.anyio
async def test_sql_second_rating_rejected(session):
    uow = SQLUnitOfWork(session)
    order_id = await _order(uow)
    await submit_rating(uow, order_id, 5, comment="mantap")
    with pytest.raises(DuplicateRating):
        await submit_rating(uow, order_id, 2)
    rating = await uow.ratings.get_for_order(order_id)
    assert rating.overall_rating == 5
    assert rating.comment == "mantap"


@pytest.mark.anyio
async def test_sql_unique_constraint_backs_the_check(session):
    uow = SQLUnitOfWork(session)
    order_id = await _order(uow)
    await uow.ratings.create(
        {"order_id": order_id, "overall_rating": 5, "created_at": NOW}
    )
    await uow.commit()
    with pytest.raises(DuplicateRating):
        await uow.ratings.create(
            {"order_id": order_id, "overall_rating": 1, "created_at": NOW}
        )
    rating = await uow.ratings.get_for_order(order_id)
    assert rating.overall_rating == 5
