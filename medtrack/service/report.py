# medtrack/service/report.py
from datetime import date, timedelta
from typing import List, Optional

from ..models import MedicationStatus

RULE = "=" * 63
SECTION = "-" * 61


def export_report(session, today: Optional[date] = None) -> str:
    """Plain-text adherence report for sharing with a doctor or caregiver."""
    today = today or session.today()
    lines: List[str] = [RULE, f"           MEDICATION REPORT - {today.isoformat()}", RULE, ""]

    lines += ["ACTIVE MEDICATIONS", SECTION]
    active = [m for m in session.medications if m.status == MedicationStatus.ACTIVE]
    if not active:
        lines.append("   No active medications.")
    for i, med in enumerate(active, start=1):
        lines.append("")
        lines.append(f"   {i}. {med.name}{' [CRITICAL]' if med.is_critical else ''}")
        if med.generic_name:
            lines.append(f"      Generic name: {med.generic_name}")
        lines.append(f"      Dose: {med.dose:g} {med.dose_unit.value}")
        lines.append(f"      Schedule: {', '.join(med.schedules) or '-'}")
        unit = (med.stock_unit or med.dose_unit).value
        lines.append(f"      Stock: {med.stock} {unit}")
        if med.stock == 0:
            lines.append("      ! OUT OF STOCK")
        elif med.stock <= med.low_stock_threshold:
            lines.append("      ! LOW STOCK")
        if med.instructions:
            lines.append(f"      Instructions: {', '.join(med.instructions)}")
        if med.notes:
            lines.append(f"      Notes: {med.notes}")
        if med.prescribed_by:
            lines.append(f"      Prescribed by: {med.prescribed_by}")

    summary = session.day_summary(today)
    lines += [
        "",
        f"TODAY ({today.isoformat()})",
        SECTION,
        f"   Scheduled doses: {summary.total}",
        f"   Taken: {summary.taken}",
        f"   Pending: {summary.pending}",
        f"   Skipped: {summary.skipped}",
        f"   Postponed: {summary.postponed}",
        f"   Adherence: {summary.rate}%",
        "",
        "LAST 7 DAYS",
        SECTION,
        f"   Adherence: {session.rolling_rate(7, today)}%",
        "",
        "RECENT SIDE EFFECTS (LAST 7 DAYS)",
        SECTION,
    ]

    names = {m.id: m.name for m in session.medications}
    recent = [n for n in session.side_effects(today - timedelta(days=6)) if n.date <= today]
    if not recent:
        lines.append("   None recorded.")
    for note in recent:
        name = names.get(note.medication_id, "Unknown medication")
        lines.append(f"   {note.date.isoformat()}  {name}: {note.symptoms} ({note.severity.value})")
        if note.notes:
            lines.append(f"      {note.notes}")

    lines += [
        "",
        RULE,
        f"   Generated: {session.now().strftime('%Y-%m-%d %H:%M')}",
        "   This report does not replace professional medical advice.",
        RULE,
    ]
    return "\n".join(lines) + "\n"
