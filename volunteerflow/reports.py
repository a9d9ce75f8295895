"""
Dashboard and report aggregation over the pipeline tables.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import and_, func, select

from volunteerflow.config import MEDICAL_EXPIRY_WARNING_DAYS
from volunteerflow.database import (
    applications,
    medical_screenings,
    placements,
    positions,
    volunteers,
)
from volunteerflow.models import SECTORS, VOLUNTEER_STATUSES
from volunteerflow.storage import utcnow


def _percent(count: int, total: int) -> int:
    # Half-up rounding, so 12.5 → 13.
    if total <= 0:
        return 0
    return int(count * 100 / total + 0.5)


def pipeline_stages(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Count volunteers per status, in pipeline order."""
    if df.empty:
        return []
    counts = df["status"].fillna("unknown").value_counts()
    total = int(counts.sum())
    order = [s for s in VOLUNTEER_STATUSES if s in counts.index]
    order += sorted(s for s in counts.index if s not in VOLUNTEER_STATUSES)
    return [
        {"stage": stage, "count": int(counts[stage]), "percentage": _percent(int(counts[stage]), total)}
        for stage in order
    ]


def sector_stats(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Total / filled / open positions per sector."""
    if df.empty:
        return []
    df = df.assign(
        sector=df["sector"].fillna("unknown"),
        is_open=df["is_open"].fillna(False).astype(bool),
    )
    grouped = df.groupby("sector")["is_open"].agg(["count", "sum"])
    order = [s for s in SECTORS if s in grouped.index]
    order += sorted(s for s in grouped.index if s not in SECTORS)
    stats = []
    for sector in order:
        total = int(grouped.loc[sector, "count"])
        open_count = int(grouped.loc[sector, "sum"])
        stats.append({
            "sector": sector,
            "total": total,
            "filled": total - open_count,
            "open": open_count,
        })
    return stats


def dashboard_metrics(engine) -> Dict[str, Any]:
    """Headline counts shown to every role.

    Pipeline and sector breakdowns are report data and only come from
    :func:`summary_report`.
    """
    with engine.connect() as conn:
        vol_df = pd.read_sql_query(select(volunteers.c.status), conn)
        pos_df = pd.read_sql_query(select(positions.c.is_open), conn)
        plc_df = pd.read_sql_query(select(placements.c.status), conn)

    open_positions = 0
    if not pos_df.empty:
        open_positions = int(pos_df["is_open"].fillna(False).astype(bool).sum())

    return {
        "active_leads": int((vol_df["status"] == "interested").sum()),
        "open_positions": open_positions,
        "in_screening": int(vol_df["status"].isin(["screening", "medical_screening"]).sum()),
        "deployed": int((plc_df["status"] == "active").sum()),
    }


def urgent_items(engine, now: Optional[datetime] = None,
                 warning_days: int = MEDICAL_EXPIRY_WARNING_DAYS) -> List[Dict[str, Any]]:
    """Expiring medical clearances and applications awaiting an interview."""
    now = now or utcnow()
    horizon = now + timedelta(days=warning_days)

    with engine.connect() as conn:
        expiring = conn.execute(
            select(func.count()).select_from(medical_screenings).where(and_(
                medical_screenings.c.status == "completed",
                medical_screenings.c.expires_at <= horizon,
            ))
        ).scalar_one()
        pending = conn.execute(
            select(func.count()).select_from(applications).where(and_(
                applications.c.status == "applied",
                applications.c.interview_date.is_(None),
            ))
        ).scalar_one()

    items = []
    if expiring:
        items.append({
            "type": "medical_expiring",
            "title": "Medical clearance expiring",
            "subtitle": f"{expiring} volunteers - expires in {warning_days} days",
            "count": int(expiring),
        })
    if pending:
        items.append({
            "type": "pending_interviews",
            "title": "Pending interviews",
            "subtitle": f"{pending} candidates awaiting scheduling",
            "count": int(pending),
        })
    return items


def placements_by_country(engine) -> List[Dict[str, Any]]:
    """Placement counts per host country and status."""
    stmt = (
        select(positions.c.country, placements.c.status)
        .select_from(placements.join(positions, placements.c.position_id == positions.c.id))
    )
    with engine.connect() as conn:
        df = pd.read_sql_query(stmt, conn)
    if df.empty:
        return []
    counts = df.groupby(["country", "status"]).size().reset_index(name="count")
    counts = counts.sort_values(["country", "status"])
    return [
        {"country": r["country"], "status": r["status"], "count": int(r["count"])}
        for r in counts.to_dict(orient="records")
    ]


def summary_report(engine) -> Dict[str, Any]:
    """Pipeline, sector and placement breakdowns; served behind view_reports."""
    with engine.connect() as conn:
        vol_df = pd.read_sql_query(select(volunteers.c.status), conn)
        pos_df = pd.read_sql_query(select(positions.c.sector, positions.c.is_open), conn)
    return {
        "pipeline": pipeline_stages(vol_df),
        "sectors": sector_stats(pos_df),
        "placements_by_country": placements_by_country(engine),
    }
