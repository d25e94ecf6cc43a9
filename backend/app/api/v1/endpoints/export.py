import asyncio

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from app.api.deps import get_data_service, require_format, require_period
from app.services.data_service import DataService, combine_sources
from app.services.export import (
    create_export_data,
    generate_export_filename,
    serialize_to_csv,
    serialize_to_json,
)
from core.exceptions import EntityNotFound

router = APIRouter()

MEDIA_TYPES = {"json": "application/json", "csv": "text/csv"}


@router.get("/{export_format}/{city}/{days}")
async def export_city_data(
    export_format: str,
    city: str,
    days: int,
    service: DataService = Depends(get_data_service),
):
    """Download activity, air quality and correlation for a city as a file."""
    require_format(export_format)
    require_period(days)
    try:
        activity, environmental, correlation = await asyncio.gather(
            service.get_activity(city, days),
            service.get_environmental(city, days),
            service.get_correlation(city, days),
        )
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)

    data = create_export_data(
        city,
        days,
        export_format,
        activity.data,
        environmental.data,
        correlation.data.correlation,
        data_source=combine_sources(activity, environmental, correlation),
    )
    body = serialize_to_json(data) if export_format == "json" else serialize_to_csv(data)
    filename = generate_export_filename(city, days, export_format, data.metadata.generated_at)
    return Response(
        content=body,
        media_type=MEDIA_TYPES[export_format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
