from html import escape
from typing import List

from grid import CAPACITY, TIMEZONE, section_label, slot_label
from schemas import AdminBooking

ADMIN_STYLE = """
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { font-family: Arial, sans-serif; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 20px; }
    .container { max-width: 1400px; margin: 0 auto; background: white; padding: 30px; border-radius: 15px; }
    h1 { color: #764ba2; text-align: center; margin-bottom: 30px; }
    .back-link { display: inline-block; margin-bottom: 20px; padding: 10px 20px; background: #764ba2; color: white; text-decoration: none; border-radius: 8px; }
    .stats { display: grid; grid-template-columns: repeat(3, 1fr); gap: 20px; margin-bottom: 30px; }
    .stat-card { background: linear-gradient(135deg, #667eea, #764ba2); color: white; padding: 20px; border-radius: 10px; text-align: center; }
    .stat-number { font-size: 2.5em; font-weight: bold; }
    .stat-label { font-size: 0.9em; margin-top: 5px; }
    table { width: 100%; border-collapse: collapse; margin-top: 20px; }
    th { background: #764ba2; color: white; padding: 15px; text-align: left; }
    td { padding: 12px 15px; border-bottom: 1px solid #ddd; }
    tr:hover { background: #f5f5f5; }
    .empty { text-align: center; padding: 40px; color: #999; }
"""


def occupancy_percent(total: int) -> int:
    return round(total / CAPACITY * 100)


def booked_at(b: AdminBooking) -> str:
    created = b.created_at
    if created.tzinfo is not None:
        created = created.astimezone(TIMEZONE)
    return created.strftime("%H:%M:%S")


def render_booking_row(b: AdminBooking) -> str:
    return f"""
        <tr>
            <td>{section_label(b.section_id)}</td>
            <td>{slot_label(b.slot_number)}</td>
            <td>{escape(b.full_name)}</td>
            <td>{escape(b.place)}</td>
            <td>{escape(b.mobile)}</td>
            <td>{booked_at(b)}</td>
        </tr>"""


def render_admin_page(bookings: List[AdminBooking]) -> str:
    total = len(bookings)
    if bookings:
        rows = "".join(render_booking_row(b) for b in bookings)
        body = f"""
        <table>
            <tr><th>Section</th><th>Slot</th><th>Name</th><th>Place</th><th>Mobile</th><th>Time</th></tr>
            {rows}
        </table>"""
    else:
        body = '<div class="empty">No bookings today</div>'

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Admin Panel</title>
    <style>{ADMIN_STYLE}</style>
</head>
<body>
    <div class="container">
        <a href="/" class="back-link">&larr; Back</a>
        <h1>Admin Panel</h1>
        <div class="stats">
            <div class="stat-card">
                <div class="stat-number">{total}</div>
                <div class="stat-label">Total Bookings</div>
            </div>
            <div class="stat-card">
                <div class="stat-number">{CAPACITY - total}</div>
                <div class="stat-label">Available</div>
            </div>
            <div class="stat-card">
                <div class="stat-number">{occupancy_percent(total)}%</div>
                <div class="stat-label">Occupancy</div>
            </div>
        </div>
        {body}
    </div>
</body>
</html>
"""
