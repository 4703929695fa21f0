from typing import Iterable, List, Literal, Optional, Tuple


def line_subtotal(price: float, quantity: int) -> float:
    """Subtotal of one cart or order line."""
    return price * quantity


def cart_totals(items: Iterable, shipping: float, tax: float) -> Tuple[int, float, float]:
    """
    Recompute the derived cart fields from its lines.

    Args:
        items: lines exposing ``price`` and ``quantity``.
        shipping: fixed shipping amount of the cart.
        tax: fixed tax amount of the cart.

    Returns:
        (total_items, subtotal, total) where subtotal is the sum of
        price * quantity and total is subtotal + shipping + tax.
    """
    total_items = 0
    subtotal = 0.0
    for item in items:
        total_items += item.quantity
        subtotal += line_subtotal(item.price, item.quantity)
    return total_items, subtotal, subtotal + shipping + tax


def format_money(amount: float) -> str:
    return f"${amount:,.2f}"


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])
