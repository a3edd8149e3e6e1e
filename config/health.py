from __future__ import annotations

from typing import Any

from django.db import connection
from django.db import transaction
from django.http import JsonResponse


def check_db() -> dict[str, Any]:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    else:
        return {"ok": True}


def check_realtime() -> dict[str, Any]:
    try:
        from itemchat.realtime.socketio import gateway  # noqa: PLC0415
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    return {"ok": True, "connected_users": len(gateway.registry)}


@transaction.non_atomic_requests
def health(request):
    components = {"db": check_db(), "realtime": check_realtime()}

    all_ok = all(v.get("ok", False) for v in components.values())
    some_ok = any(v.get("ok", False) for v in components.values())

    status = "ok" if all_ok else ("degraded" if some_ok else "down")
    http_status = 200 if all_ok else 503

    return JsonResponse(
        {"status": status, "components": components},
        status=http_status,
    )


def route_not_found(request, exception=None):
    return JsonResponse(
        {"detail": f"Route not found: {request.get_full_path()}"},
        status=404,
    )
