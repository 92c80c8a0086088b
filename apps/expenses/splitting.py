"""
Split Calculation Module
========================

Cent-precise splitting of an expense amount among its participants.

The calculator converts the amount to integer cents, computes every
participant's raw share exactly, floors each share to the cent and adds the
leftover cents to a single participant. The returned shares therefore always
sum to the original amount.

Functions:
    clean_amount: Validate and normalise a money amount.
    compute_shares: Split an amount among participants.

Example:
    Splitting a dinner three ways::

        from decimal import Decimal
        from apps.expenses.splitting import compute_shares

        shares = compute_shares(Decimal('100.00'), ['ana', 'miha', 'lara'], 'equal')
        # {'ana': Decimal('33.34'), 'miha': Decimal('33.33'), 'lara': Decimal('33.33')}
"""

import math
from decimal import Decimal, InvalidOperation
from fractions import Fraction

from django.conf import settings

from .exceptions import InvalidAmountError, InvalidSplitError
from .models import SplitMode


CENT = Decimal('0.01')

# Largest values the money (12, 2) and weight (9, 4) columns can hold
MAX_AMOUNT = Decimal('9999999999.99')
MAX_WEIGHT = Decimal('99999.9999')
WEIGHT_STEP = Decimal('0.0001')


def clean_amount(amount):
    """
    Validate an amount and return it as a two-place Decimal.

    Raises:
        InvalidAmountError: If the amount is not a number, is not positive,
            carries more than two decimal places or exceeds MAX_AMOUNT.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Invalid amount: {amount!r}")

    if not value.is_finite() or value <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount}")

    if value > MAX_AMOUNT:
        raise InvalidAmountError(f"Amount {amount} is larger than {MAX_AMOUNT}")

    if value != value.quantize(CENT):
        raise InvalidAmountError(f"Amount {amount} has more than two decimal places")

    return value.quantize(CENT)


def _unique(participants):
    seen = set()
    ordered = []
    for participant in participants:
        if participant not in seen:
            seen.add(participant)
            ordered.append(participant)
    return ordered


def _clean_weights(participants, weights):
    if weights is None:
        raise InvalidSplitError("Weights are required for this split mode")

    cleaned = {}
    for participant in participants:
        raw = weights.get(participant)
        if raw is None:
            raise InvalidSplitError(f"Missing weight for participant {participant}")
        try:
            weight = Decimal(str(raw))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidSplitError(f"Invalid weight for participant {participant}: {raw!r}")
        if not weight.is_finite() or weight < 0:
            raise InvalidSplitError(f"Weight for participant {participant} must be non-negative")
        if weight > MAX_WEIGHT or weight != weight.quantize(WEIGHT_STEP):
            raise InvalidSplitError(
                f"Weight for participant {participant} must be at most {MAX_WEIGHT} "
                f"with up to four decimal places"
            )
        cleaned[participant] = weight
    return cleaned


def _raw_shares(total_cents, participants, split_mode, weights, tolerance):
    if split_mode == SplitMode.EQUAL:
        return {p: Fraction(total_cents, len(participants)) for p in participants}

    if split_mode == SplitMode.SHARES:
        cleaned = _clean_weights(participants, weights)
        weight_sum = sum(cleaned.values())
        if weight_sum <= 0:
            raise InvalidSplitError("Sum of share weights must be positive")
        return {
            p: total_cents * Fraction(w) / Fraction(weight_sum)
            for p, w in cleaned.items()
        }

    if split_mode == SplitMode.PERCENTAGE:
        cleaned = _clean_weights(participants, weights)
        percent_sum = sum(cleaned.values())
        if abs(percent_sum - 100) > tolerance:
            raise InvalidSplitError(
                f"Percentages must add up to 100, got {percent_sum}"
            )
        return {p: total_cents * Fraction(w) / 100 for p, w in cleaned.items()}

    raise InvalidSplitError(f"Unknown split mode: {split_mode!r}")


def compute_shares(amount, participants, split_mode=SplitMode.EQUAL, weights=None, tolerance=None):
    """
    Split ``amount`` among ``participants`` with cent precision.

    Algorithm:
        1. Convert to cents: ``total_cents = amount * 100``
        2. Compute each raw share exactly (as a fraction of cents)
        3. Floor every share to a whole cent
        4. Add ``total_cents - sum(floored)`` to the first participant

    Percentages may miss 100 by up to the tolerance, so the leftover can be
    negative. A negative leftover goes to the first participant whose share
    can absorb it.

    Args:
        amount (Decimal): Amount to split. Positive, at most two decimals.
        participants (iterable): Hashable participant keys, in order.
            Duplicates are collapsed.
        split_mode (str): ``equal``, ``shares`` or ``percentage``.
        weights (dict, optional): Participant key -> weight (shares mode)
            or percentage (percentage mode). Keys of non-participants are
            ignored.
        tolerance (Decimal, optional): Allowed deviation of the percentage
            sum from 100. Defaults to ``LEDGER_PERCENTAGE_TOLERANCE``.

    Returns:
        dict: Participant key -> owed Decimal, in participant order.

    Raises:
        InvalidAmountError: If the amount is unusable.
        InvalidSplitError: If participants or weights are unusable.

    Example:
        >>> compute_shares(Decimal('10.00'), ['a', 'b', 'c'], 'shares',
        ...                {'a': 1, 'b': 1, 'c': 2})
        {'a': Decimal('2.50'), 'b': Decimal('2.50'), 'c': Decimal('5.00')}
    """
    amount = clean_amount(amount)
    participants = _unique(participants)
    if not participants:
        raise InvalidSplitError("At least one participant required")

    if tolerance is None:
        tolerance = Decimal(str(settings.LEDGER_PERCENTAGE_TOLERANCE))

    total_cents = int(amount * 100)
    raw = _raw_shares(total_cents, participants, split_mode, weights, tolerance)

    cents = {p: math.floor(share) for p, share in raw.items()}
    remainder = total_cents - sum(cents.values())

    if remainder:
        target = next(
            (p for p in participants if cents[p] + remainder >= 0),
            None
        )
        if target is None:
            raise InvalidSplitError("Split cannot be balanced to the expense amount")
        cents[target] += remainder

    shares = {p: (Decimal(cents[p]) / 100).quantize(CENT) for p in participants}

    # Verification (safety check)
    if sum(shares.values()) != amount:
        raise InvalidSplitError(
            f"Split calculation error: {sum(shares.values())} != {amount}"
        )

    return shares
