from __future__ import annotations
import aiosqlite
from datetime import datetime
from typing import List
from ..core.timeutil import format_timestamp
from ..domain.models import Reading


_COLUMNS = (
    "mac", "time_utc", "lat", "lon",
    "h", "t", "pm1", "pm10", "pm25", "co", "co2", "hcho", "tvoc",
    "name", "fw_ver", "model", "odm", "area", "type",
    "status", "adf_status",
)


class SQLiteReadingStore:
    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS readings (
                    mac TEXT NOT NULL,
                    time_utc TEXT NOT NULL,
                    lat REAL NOT NULL DEFAULT 0,
                    lon REAL NOT NULL DEFAULT 0,
                    h REAL NOT NULL DEFAULT 0,
                    t REAL NOT NULL DEFAULT 0,
                    pm1 REAL NOT NULL DEFAULT 0,
                    pm10 REAL NOT NULL DEFAULT 0,
                    pm25 REAL NOT NULL DEFAULT 0,
                    co REAL NOT NULL DEFAULT 0,
                    co2 REAL NOT NULL DEFAULT 0,
                    hcho REAL NOT NULL DEFAULT 0,
                    tvoc REAL NOT NULL DEFAULT 0,
                    name TEXT NOT NULL DEFAULT '',
                    fw_ver TEXT NOT NULL DEFAULT '',
                    model TEXT NOT NULL DEFAULT '',
                    odm TEXT NOT NULL DEFAULT '',
                    area TEXT NOT NULL DEFAULT '',
                    type TEXT NOT NULL DEFAULT 'airbox',
                    status TEXT NOT NULL DEFAULT 'offline'
                        CHECK (status IN ('online', 'offline')),
                    adf_status INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            await db.execute("CREATE INDEX IF NOT EXISTS idx_readings_mac ON readings(mac)")
            await db.execute("CREATE INDEX IF NOT EXISTS idx_readings_ts ON readings(time_utc)")
            await db.commit()

    async def create(self, r: Reading) -> Reading:
        if not r.mac or r.time is None:
            raise ValueError("reading requires mac and time")
        placeholders = ",".join("?" for _ in _COLUMNS)
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                f"INSERT INTO readings({','.join(_COLUMNS)}) VALUES ({placeholders})",
                (
                    r.mac, format_timestamp(r.time), float(r.lat), float(r.lon),
                    float(r.h), float(r.t), float(r.pm1), float(r.pm10), float(r.pm25),
                    float(r.co), float(r.co2), float(r.hcho), float(r.tvoc),
                    r.name, r.fw_ver, r.model, r.odm, r.area, r.type,
                    r.status, int(r.adf_status),
                ),
            )
            await db.commit()
        return r

    async def find_all(self) -> List[Reading]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute(
                f"""
                SELECT {','.join(_COLUMNS)}
                FROM readings
                ORDER BY time_utc DESC, rowid DESC
                """
            )
            rows = await cur.fetchall()
        out: list[Reading] = []
        for row in rows:
            data = dict(zip(_COLUMNS, row))
            data["time"] = datetime.fromisoformat(data.pop("time_utc"))
            out.append(Reading(**data))
        return out
