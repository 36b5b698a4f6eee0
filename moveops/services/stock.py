from moveops.error import abort
from moveops.schemas import StockAction


def calc_signed_delta_and_new_stock(
    action: StockAction, delta: int, old_stock: int
) -> tuple[int, int]:
    # IN/OUT: delta > 0; ADJUST: delta >= 0 is the target stock
    if action in (StockAction.IN, StockAction.OUT) and delta <= 0:
        abort(400, "INVALID_DELTA", "IN/OUT delta must be > 0")

    if action == StockAction.ADJUST and delta < 0:
        abort(400, "INVALID_DELTA", "ADJUST delta must be >= 0 (target stock)")

    if action == StockAction.IN:
        signed_delta = delta
        new_stock = old_stock + delta
    elif action == StockAction.OUT:
        signed_delta = -delta
        new_stock = old_stock - delta
    else:  # ADJUST: delta is the target stock
        new_stock = delta
        signed_delta = new_stock - old_stock

    # manual moves may not overdraw; consumption booked by a completed move may
    if new_stock < 0:
        abort(400, "INSUFFICIENT_STOCK", f"insufficient stock: have {old_stock}, taking {delta}")

    if signed_delta == 0:
        abort(400, "NO_CHANGE", "stock unchanged, nothing to submit")

    return signed_delta, new_stock
