"""
Upload Library - Remember uploaded station files and their rows
"""

import json
import logging
import sqlite3
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from config import prioritizer as config
from core.prioritization import list_work_centers

logger = logging.getLogger(__name__)


def _json_default(value):
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if hasattr(value, "item"):
        # numpy scalars coming out of pandas
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class UploadLibrary:
    def __init__(self, db_path: str = config.UPLOAD_LIBRARY_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        """Create uploads table if it doesn't exist"""
        conn = self._connect()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS uploads (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                original_name TEXT NOT NULL,
                uploaded_at TEXT NOT NULL,
                row_count INTEGER NOT NULL,
                work_centers TEXT,
                rows_json TEXT NOT NULL
            )
        """)

        conn.commit()
        conn.close()

    def save_upload(self, original_name: str, rows: List[dict]) -> int:
        """
        Store an uploaded file's rows as a JSON blob.

        Dates are stored as ISO strings, which the date normalizer reads back.

        Returns:
            Id of the new upload
        """
        payload = json.dumps(rows, ensure_ascii=False, default=_json_default)
        work_centers = json.dumps(list_work_centers(rows), ensure_ascii=False)

        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO uploads (original_name, uploaded_at, row_count, work_centers, rows_json)
                VALUES (?, ?, ?, ?, ?)
            """, (
                original_name,
                datetime.now().isoformat(timespec="seconds"),
                len(rows),
                work_centers,
                payload,
            ))
            conn.commit()
            upload_id = cursor.lastrowid
        finally:
            conn.close()

        logger.info("Saved upload %s (%d rows) as #%d", original_name, len(rows), upload_id)
        return upload_id

    def list_uploads(self) -> List[Dict]:
        """Uploaded files, newest first (without their rows)"""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT id, original_name, uploaded_at, row_count, work_centers
                FROM uploads
                ORDER BY uploaded_at DESC, id DESC
            """)
            results = cursor.fetchall()
        finally:
            conn.close()

        return [
            {
                "id": row[0],
                "original_name": row[1],
                "uploaded_at": row[2],
                "row_count": row[3],
                "work_centers": json.loads(row[4]) if row[4] else [],
            }
            for row in results
        ]

    def load_rows(self, upload_id: int) -> Optional[List[dict]]:
        """Rows of one upload, or None if it doesn't exist"""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT rows_json FROM uploads WHERE id = ?", (upload_id,))
            row = cursor.fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        return json.loads(row[0])

    def delete_upload(self, upload_id: int) -> bool:
        """Delete an upload; False if it didn't exist"""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM uploads WHERE id = ?", (upload_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
        finally:
            conn.close()

        if deleted:
            logger.info("Deleted upload #%d", upload_id)
        return deleted

    def get_stats(self) -> dict:
        """Get library statistics"""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*), COALESCE(SUM(row_count), 0) FROM uploads")
            total_files, total_rows = cursor.fetchone()
        finally:
            conn.close()

        return {
            "total_files": total_files,
            "total_rows": total_rows,
        }
