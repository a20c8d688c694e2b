"""Body progress reports and the statistics built from them."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Optional

from fitcoach.database import TIMESTAMP_FORMAT, RecordNotFound
from fitcoach.models import (
    ChartData,
    ChartPoint,
    ProgressReport,
    ProgressReportWithTrainer,
    TraineeStatsItem,
    TrainerStats,
    UserStats,
)


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


class ProgressReportRepository:
    """Reads and writes rows of the progress_reports table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def create(self, report: ProgressReport) -> ProgressReport:
        """Store the report and fill in its id and creation time."""
        now = datetime.now().replace(microsecond=0)
        with self.conn:
            cursor = self.conn.execute(
                """
                INSERT INTO progress_reports (client_id, trainer_id, weight, body_fat,
                                              measurements, notes, photo_url, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    report.client_id,
                    report.trainer_id,
                    report.weight,
                    report.body_fat,
                    report.measurements,
                    report.notes,
                    report.photo_url,
                    now.strftime(TIMESTAMP_FORMAT),
                ),
            )
        report.id = cursor.lastrowid
        report.created_at = now
        return report

    def get_by_client_id(self, client_id: int) -> list[ProgressReportWithTrainer]:
        """Return the client's reports, newest first.

        Reports without a trainer carry the name 'Self-report'.
        """
        rows = self.conn.execute(
            """
            SELECT pr.id, pr.client_id, pr.trainer_id, pr.weight, pr.body_fat,
                   pr.measurements, pr.notes, pr.photo_url, pr.created_at,
                   COALESCE(u.username, 'Self-report') AS username
            FROM progress_reports pr
            LEFT JOIN users u ON pr.trainer_id = u.id
            WHERE pr.client_id = ?
            ORDER BY pr.created_at DESC, pr.id DESC
            """,
            (client_id,),
        ).fetchall()
        return [
            ProgressReportWithTrainer(
                id=row["id"],
                client_id=row["client_id"],
                trainer_id=row["trainer_id"],
                weight=_optional_float(row["weight"]),
                body_fat=_optional_float(row["body_fat"]),
                measurements=row["measurements"] or "",
                notes=row["notes"] or "",
                photo_url=row["photo_url"] or "",
                created_at=_to_datetime(row["created_at"]),
                trainer_username=row["username"],
            )
            for row in rows
        ]

    def get_user_stats(self, user_id: int) -> UserStats:
        """Summarise the user's weight and body fat over reports with a weight."""
        stats = UserStats()
        (stats.total_reports,) = self.conn.execute(
            "SELECT COUNT(*) FROM progress_reports WHERE client_id = ?", (user_id,)
        ).fetchone()
        if stats.total_reports == 0:
            return stats

        row = self.conn.execute(
            """
            SELECT COALESCE(MIN(weight), 0), COALESCE(MAX(weight), 0),
                   COALESCE(AVG(weight), 0),
                   COALESCE(MIN(body_fat), 0), COALESCE(MAX(body_fat), 0),
                   COALESCE(AVG(body_fat), 0)
            FROM progress_reports
            WHERE client_id = ? AND weight IS NOT NULL
            """,
            (user_id,),
        ).fetchone()
        (
            stats.min_weight,
            stats.max_weight,
            stats.avg_weight,
            stats.min_body_fat,
            stats.max_body_fat,
            stats.avg_body_fat,
        ) = (float(value) for value in row)

        latest = self.conn.execute(
            """
            SELECT COALESCE(weight, 0) AS weight, body_fat, created_at
            FROM progress_reports
            WHERE client_id = ? AND weight IS NOT NULL
            ORDER BY created_at DESC, id DESC LIMIT 1
            """,
            (user_id,),
        ).fetchone()
        if latest is not None:
            stats.latest_weight = float(latest["weight"])
            if latest["body_fat"] is not None:
                stats.latest_body_fat = float(latest["body_fat"])
            stats.latest_date = _to_datetime(latest["created_at"])

        first = self.conn.execute(
            """
            SELECT COALESCE(weight, 0) AS weight, created_at
            FROM progress_reports
            WHERE client_id = ? AND weight IS NOT NULL
            ORDER BY created_at ASC, id ASC LIMIT 1
            """,
            (user_id,),
        ).fetchone()
        if first is not None:
            stats.first_weight = float(first["weight"])
            stats.first_date = _to_datetime(first["created_at"])

        if stats.first_weight > 0 and stats.latest_weight > 0:
            stats.weight_change = stats.latest_weight - stats.first_weight
        return stats

    def get_chart_data(self, user_id: int) -> ChartData:
        """Return weight and body-fat series over time, oldest first."""
        rows = self.conn.execute(
            """
            SELECT weight, body_fat, created_at
            FROM progress_reports
            WHERE client_id = ? AND weight IS NOT NULL
            ORDER BY created_at ASC, id ASC
            """,
            (user_id,),
        ).fetchall()
        chart = ChartData()
        for row in rows:
            when = str(row["created_at"])
            chart.weight_data.append(ChartPoint(date=when, value=float(row["weight"])))
            if row["body_fat"] is not None:
                chart.body_fat_data.append(
                    ChartPoint(date=when, value=float(row["body_fat"]))
                )
        return chart

    def get_trainer_stats(self, trainer_id: int) -> TrainerStats:
        """Summarise the trainer's trainees and the reports they have filed."""
        stats = TrainerStats()
        overview = self.conn.execute(
            """
            SELECT COUNT(DISTINCT tt.trainee_id), COUNT(pr.id), AVG(pr.weight)
            FROM trainer_trainee tt
            LEFT JOIN progress_reports pr
                   ON tt.trainee_id = pr.client_id AND pr.trainer_id = :trainer
            WHERE tt.trainer_id = :trainer
            """,
            {"trainer": trainer_id},
        ).fetchone()
        stats.total_trainees = int(overview[0])
        stats.total_reports = int(overview[1])
        if overview[2] is not None:
            stats.avg_weight = float(overview[2])

        rows = self.conn.execute(
            """
            SELECT u.id, u.username,
                   COUNT(pr.id) AS report_count,
                   MAX(pr.weight) AS latest_weight,
                   MIN(pr.weight) AS first_weight,
                   MAX(pr.created_at) AS last_report_date
            FROM trainer_trainee tt
            JOIN users u ON tt.trainee_id = u.id
            LEFT JOIN progress_reports pr ON tt.trainee_id = pr.client_id
            WHERE tt.trainer_id = ?
            GROUP BY u.id, u.username
            ORDER BY last_report_date IS NULL, last_report_date DESC
            """,
            (trainer_id,),
        ).fetchall()
        for row in rows:
            item = TraineeStatsItem(
                trainee_id=row["id"],
                trainee_name=row["username"],
                report_count=int(row["report_count"]),
            )
            if row["latest_weight"] is not None:
                item.latest_weight = float(row["latest_weight"])
            if row["first_weight"] is not None:
                item.first_weight = float(row["first_weight"])
                if row["latest_weight"] is not None:
                    item.weight_change = item.latest_weight - item.first_weight
            if row["last_report_date"] is not None:
                item.last_report_date = str(row["last_report_date"])
            stats.trainee_stats.append(item)
        return stats

    def get_trainee_reports(
        self, trainer_id: int, trainee_id: int
    ) -> list[ProgressReportWithTrainer]:
        """Return a trainee's reports, raising RecordNotFound if not coached by the trainer."""
        if not self.verify_trainer_access(trainer_id, trainee_id):
            raise RecordNotFound(
                f"trainee {trainee_id} is not assigned to trainer {trainer_id}"
            )
        return self.get_by_client_id(trainee_id)

    def get_latest_weight(self, client_id: int) -> float:
        """Return the most recent recorded weight, raising RecordNotFound if none."""
        row = self.conn.execute(
            """
            SELECT weight FROM progress_reports
            WHERE client_id = ? AND weight IS NOT NULL
            ORDER BY created_at DESC, id DESC LIMIT 1
            """,
            (client_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFound(f"no weight recorded for client {client_id}")
        return float(row["weight"])

    def verify_trainer_access(self, trainer_id: int, trainee_id: int) -> bool:
        """Tell whether the trainee is assigned to the trainer."""
        row = self.conn.execute(
            "SELECT 1 FROM trainer_trainee WHERE trainer_id = ? AND trainee_id = ?",
            (trainer_id, trainee_id),
        ).fetchone()
        return row is not None