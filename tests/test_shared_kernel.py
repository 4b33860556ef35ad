"""
Тесты для общего ядра: диапазон дат, деньги.
"""
import itertools
from datetime import date
from decimal import Decimal

import pytest

from hotel_booking.shared_kernel import (
    BusinessRuleValidationException,
    DateRange,
    InvalidRangeError,
    Money,
)

from .factories import day


class TestDateRange:
    """Тесты для полуоткрытого диапазона дат."""

    def test_nights(self):
        """Количество ночей равно разнице дат."""
        assert DateRange(check_in=day(5), check_out=day(7)).nights == 2

    def test_accepts_iso_strings(self):
        """Даты можно передать строками ISO 8601."""
        period = DateRange(check_in="2030-01-05", check_out="2030-01-07")

        assert period.check_in == date(2030, 1, 5)
        assert period.check_out == date(2030, 1, 7)

    def test_empty_range_is_rejected(self):
        """Диапазон нулевой длины недопустим."""
        with pytest.raises(InvalidRangeError):
            DateRange(check_in=day(3), check_out=day(3))

    def test_reversed_range_is_rejected(self):
        """Дата выезда раньше даты заезда недопустима."""
        with pytest.raises(InvalidRangeError) as exc_info:
            DateRange(check_in=day(3), check_out=day(1))

        assert exc_info.value.start == day(3)
        assert exc_info.value.end == day(1)

    def test_invalid_range_is_business_rule_violation(self):
        """InvalidRangeError - частный случай нарушения бизнес-правила."""
        with pytest.raises(BusinessRuleValidationException):
            DateRange(check_in=day(2), check_out=day(1))

    def test_is_immutable(self):
        """Диапазон нельзя изменить после создания."""
        period = DateRange(check_in=day(1), check_out=day(2))

        with pytest.raises(Exception):
            period.check_out = day(5)

    def test_overlaps_itself(self):
        """Непустой диапазон пересекается сам с собой."""
        period = DateRange(check_in=day(1), check_out=day(2))

        assert period.overlaps(period)

    def test_back_to_back_ranges_do_not_overlap(self):
        """Выезд в день заезда следующего гостя не считается пересечением."""
        first = DateRange(check_in=day(1), check_out=day(2))
        second = DateRange(check_in=day(2), check_out=day(3))

        assert not first.overlaps(second)
        assert not second.overlaps(first)

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((1, 5), (2, 3), True),  # вложенный
            ((1, 5), (4, 8), True),  # частичное пересечение справа
            ((4, 8), (1, 5), True),  # частичное пересечение слева
            ((1, 3), (5, 7), False),  # с промежутком
            ((1, 3), (3, 7), False),  # встык
        ],
    )
    def test_overlap_cases(self, a, b, expected):
        """Типичные варианты взаимного расположения."""
        first = DateRange(check_in=day(a[0]), check_out=day(a[1]))
        second = DateRange(check_in=day(b[0]), check_out=day(b[1]))

        assert first.overlaps(second) is expected

    def test_overlap_is_symmetric(self):
        """A.overlaps(B) == B.overlaps(A) для всех пар диапазонов."""
        ranges = [
            DateRange(check_in=day(start), check_out=day(end))
            for start, end in itertools.combinations(range(5), 2)
        ]

        for first, second in itertools.product(ranges, repeat=2):
            assert first.overlaps(second) == second.overlaps(first)

    def test_contains(self):
        """Дата выезда в диапазон не входит."""
        period = DateRange(check_in=day(1), check_out=day(3))

        assert period.contains(day(1))
        assert period.contains(day(2))
        assert not period.contains(day(3))


class TestMoney:
    """Тесты для денежной суммы."""

    def test_multiply_by_nights(self):
        price = Money(amount=Decimal("3500.00"))

        assert (price * 3).amount == Decimal("10500.00")

    def test_add_and_subtract(self):
        a = Money(amount=Decimal("100"))
        b = Money(amount=Decimal("40"))

        assert (a + b).amount == Decimal("140")
        assert (a - b).amount == Decimal("60")

    def test_different_currencies_cannot_be_added(self):
        with pytest.raises(ValueError, match="Нельзя складывать разные валюты"):
            Money(amount=Decimal("1"), currency="RUB") + Money(
                amount=Decimal("1"), currency="USD"
            )

    def test_result_cannot_be_negative(self):
        with pytest.raises(ValueError, match="Результат не может быть отрицательным"):
            Money(amount=Decimal("1")) - Money(amount=Decimal("2"))
