"""Route calculation endpoint: orders user-supplied addresses by driving distance."""
import json
import logging
import math

import httpx
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from api.serializers import CalculateRouteSerializer
from api.services.google_maps import DistanceMatrixError, get_distance_matrix
from api.services.optimizer import OptimizerError, RouteOptimizer
from api.utils.units import format_distance

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["POST"])
async def calculate_route(request):
    """
    POST /calculate-route

    Request body:
        {"addresses": [str, ...]}   // at least 2; the first is the start

    Response:
        {
            "route": [str, ...],          // addresses in visiting order
            "totalDistance": "12.35 km",
            "addresses": [str, ...]
        }
    """
    try:
        body = json.loads(request.body)
    except ValueError:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        return JsonResponse({"error": "Invalid JSON body"}, status=400)

    serializer = CalculateRouteSerializer(data=body)
    if not serializer.is_valid():
        return JsonResponse({"error": "Please provide at least 2 addresses"}, status=400)

    addresses: list[str] = serializer.validated_data["addresses"]

    if not settings.GOOGLE_MAPS_API_KEY:
        logger.error("GOOGLE_MAPS_API_KEY is not set")
        return JsonResponse({"error": "Google Maps API key not configured"}, status=500)

    try:
        matrix = await get_distance_matrix(addresses)
    except httpx.HTTPStatusError as exc:
        logger.warning("Distance Matrix API returned %s", exc.response.status_code)
        return JsonResponse(
            {"error": f"Distance service returned {exc.response.status_code}"},
            status=502,
        )
    except httpx.RequestError as exc:
        logger.warning("Could not reach Distance Matrix API: %s", exc)
        return JsonResponse(
            {"error": f"Could not reach distance service: {exc}"},
            status=502,
        )
    except DistanceMatrixError as exc:
        logger.warning("Distance Matrix API rejected the request: %s", exc)
        return JsonResponse(
            {"error": f"Distance service rejected the request: {exc.status}"},
            status=502,
        )

    try:
        order, total = RouteOptimizer.from_settings().optimize(matrix)
    except OptimizerError:
        logger.exception("Error calculating route for %d addresses", len(addresses))
        return JsonResponse({"error": "Failed to calculate route"}, status=500)

    if not math.isfinite(total):
        return JsonResponse(
            {"error": "No drivable route connects all addresses"}, status=422
        )

    route = [addresses[i] for i in order]
    return JsonResponse(
        {
            "route": route,
            "totalDistance": format_distance(total),
            "addresses": route,
        }
    )
