"""Export of a city's dashboard data to JSON or CSV, and parsing it back.

The CSV layout is a metadata block of ``#`` comment lines followed by one
section per series, each introduced by a ``# <Section>`` header line and
terminated by a blank line.
"""

import io
import json
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd

from app.domain.models import (
    ActivitySample,
    Coordinates,
    CorrelationResult,
    DataSource,
    EnvironmentalSample,
    json_compatible,
)

EXPORT_FORMATS = ("json", "csv")

ACTIVITY_SECTION = "# GitHub Activity Data"
ENVIRONMENTAL_SECTION = "# Air Quality Data"
CORRELATION_SECTION = "# Correlation Analysis"

ACTIVITY_COLUMNS = ["date", "city", "commits", "stars", "repositories", "contributors"]
ENVIRONMENTAL_COLUMNS = ["date", "city", "aqi", "pm25", "station", "lat", "lng"]

_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


@dataclass
class ExportMetadata:
    city: str
    period: int
    export_format: str
    generated_at: str
    data_source: DataSource = DataSource.LIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "city": self.city,
            "period": self.period,
            "exportFormat": self.export_format,
            "generatedAt": self.generated_at,
            "dataSource": self.data_source.value,
        }


@dataclass
class ExportData:
    metadata: ExportMetadata
    activity: List[ActivitySample] = field(default_factory=list)
    environmental: List[EnvironmentalSample] = field(default_factory=list)
    correlation: Optional[CorrelationResult] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "metadata": self.metadata.to_dict(),
            "githubData": [s.to_dict() for s in self.activity],
            "airQualityData": [s.to_dict() for s in self.environmental],
        }
        if self.correlation is not None:
            data["correlationData"] = self.correlation.to_dict()
        return data


def create_export_data(
    city: str,
    period: int,
    export_format: str,
    activity: List[ActivitySample],
    environmental: List[EnvironmentalSample],
    correlation: Optional[CorrelationResult] = None,
    data_source: DataSource = DataSource.LIVE,
    generated_at: Optional[str] = None,
) -> ExportData:
    if export_format not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {export_format}")
    metadata = ExportMetadata(
        city=city,
        period=period,
        export_format=export_format,
        generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
        data_source=data_source,
    )
    return ExportData(metadata, list(activity), list(environmental), correlation)


def serialize_to_json(data: ExportData) -> str:
    """Pretty-printed JSON; NaN coefficients are written as null."""
    return json.dumps(json_compatible(data.to_dict()), indent=2)


def _correlation_from_json(raw: Dict[str, Any]) -> CorrelationResult:
    correlations = {
        k: math.nan if v is None else float(v) for k, v in raw["correlations"].items()
    }
    return CorrelationResult.from_dict({**raw, "correlations": correlations})


def parse_from_json(text: str) -> ExportData:
    raw = json.loads(text)
    meta = raw["metadata"]
    correlation = raw.get("correlationData")
    return ExportData(
        metadata=ExportMetadata(
            city=meta["city"],
            period=int(meta["period"]),
            export_format=meta.get("exportFormat", "json"),
            generated_at=meta["generatedAt"],
            data_source=DataSource(meta.get("dataSource", "live")),
        ),
        activity=[ActivitySample.from_dict(s) for s in raw.get("githubData", [])],
        environmental=[EnvironmentalSample.from_dict(s) for s in raw.get("airQualityData", [])],
        correlation=_correlation_from_json(correlation) if correlation else None,
    )


def _frame_to_csv(frame: pd.DataFrame) -> str:
    return frame.to_csv(index=False, lineterminator="\n")


def serialize_to_csv(data: ExportData) -> str:
    meta = data.metadata
    lines = [
        "# Export Metadata",
        f"# City: {meta.city}",
        f"# Period: {meta.period} days",
        f"# Generated: {meta.generated_at}",
        f"# Data Source: {meta.data_source.value}",
        "",
    ]

    if data.activity:
        frame = pd.DataFrame(
            [[s.date, s.entity_id, s.commits, s.stars, s.repositories, s.contributors]
             for s in data.activity],
            columns=ACTIVITY_COLUMNS,
        )
        lines.append(ACTIVITY_SECTION)
        lines.append(_frame_to_csv(frame))

    if data.environmental:
        frame = pd.DataFrame(
            [[s.date, s.entity_id, s.aqi, s.pm25, s.station_name,
              s.coordinates.lat, s.coordinates.lng]
             for s in data.environmental],
            columns=ENVIRONMENTAL_COLUMNS,
        )
        lines.append(ENVIRONMENTAL_SECTION)
        lines.append(_frame_to_csv(frame))

    if data.correlation is not None:
        lines.append(CORRELATION_SECTION)
        lines.append("metric,correlation_value")
        for metric, value in data.correlation.correlations.items():
            lines.append(f"{metric},{float(value)!r}")
        lines.append(f"confidence,{float(data.correlation.confidence)!r}")
        lines.append(f"data_points,{data.correlation.data_points}")

    return "\n".join(lines)


def _split_sections(text: str) -> Dict[str, List[str]]:
    sections: Dict[str, List[str]] = {}
    current: Optional[List[str]] = None
    for line in text.split("\n"):
        if line in (ACTIVITY_SECTION, ENVIRONMENTAL_SECTION, CORRELATION_SECTION):
            current = sections.setdefault(line, [])
        elif not line.strip():
            current = None
        elif current is not None:
            current.append(line)
    return sections


def _read_section(lines: List[str], string_columns: List[str]) -> pd.DataFrame:
    return pd.read_csv(
        io.StringIO("\n".join(lines)),
        dtype={c: str for c in string_columns},
        keep_default_na=False,
    )


def parse_from_csv(text: str) -> ExportData:
    """Parse a CSV export back into ExportData, including every section."""
    meta: Dict[str, Any] = {}
    for line in text.split("\n"):
        if line.startswith("# City: "):
            meta["city"] = line[len("# City: "):]
        elif line.startswith("# Period: "):
            match = re.match(r"# Period: (\d+) days", line)
            if match:
                meta["period"] = int(match.group(1))
        elif line.startswith("# Generated: "):
            meta["generated_at"] = line[len("# Generated: "):]
        elif line.startswith("# Data Source: "):
            meta["data_source"] = DataSource(line[len("# Data Source: "):])

    if "city" not in meta or "period" not in meta:
        raise ValueError("CSV export is missing the City or Period metadata line")

    metadata = ExportMetadata(
        city=meta["city"],
        period=meta["period"],
        export_format="csv",
        generated_at=meta.get("generated_at", ""),
        data_source=meta.get("data_source", DataSource.LIVE),
    )
    sections = _split_sections(text)

    activity = []
    if ACTIVITY_SECTION in sections:
        frame = _read_section(sections[ACTIVITY_SECTION], ["date", "city"])
        activity = [
            ActivitySample(
                date=row.date,
                entity_id=row.city,
                commits=int(row.commits),
                stars=int(row.stars),
                repositories=int(row.repositories),
                contributors=int(row.contributors),
            )
            for row in frame.itertuples(index=False)
        ]

    environmental = []
    if ENVIRONMENTAL_SECTION in sections:
        frame = _read_section(sections[ENVIRONMENTAL_SECTION], ["date", "city", "station"])
        environmental = [
            EnvironmentalSample(
                date=row.date,
                entity_id=row.city,
                aqi=int(row.aqi),
                pm25=int(row.pm25),
                station_name=row.station,
                coordinates=Coordinates(float(row.lat), float(row.lng)),
            )
            for row in frame.itertuples(index=False)
        ]

    correlation = None
    if CORRELATION_SECTION in sections:
        values: Dict[str, str] = {}
        for line in sections[CORRELATION_SECTION][1:]:
            metric, _, value = line.partition(",")
            values[metric] = value
        confidence = float(values.pop("confidence", "0"))
        data_points = int(values.pop("data_points", "0"))
        correlation = CorrelationResult(
            entity_id=metadata.city,
            period=metadata.period,
            correlations={k: float(v) for k, v in values.items()},
            confidence=confidence,
            data_points=data_points,
        )

    return ExportData(metadata, activity, environmental, correlation)


def generate_export_filename(
    city: str, period: int, export_format: str, timestamp: Optional[str] = None
) -> str:
    """``github-air-quality-<city>-<N>days-<YYYY-MM-DD>.<format>`` with unsafe characters replaced."""
    stamp = timestamp or datetime.now(timezone.utc).isoformat()
    day = re.sub(r"[:.]", "-", stamp).split("T")[0]
    safe_city = _UNSAFE_FILENAME_CHARS.sub("-", city).strip()
    return f"github-air-quality-{safe_city}-{period}days-{day}.{export_format}"
