"""Notification Messages — pure SMS and email templates for representative alerts.

Invariants:
    - Every user-provided string in HTML output is escaped
    - SMS bodies are plain text with a Google Maps link to the location
    - Hospital distances render with one decimal

Design Decisions:
    - Templates are pure functions of their inputs (sent_at passed in, never read)
    - Spanish copy: recipients are Mexican representatives
"""

from datetime import datetime
from enum import Enum
from html import escape

from vida.core.geolocation import google_maps_url


class AlertKind(str, Enum):
    PANIC = "PANIC"
    QR_ACCESS = "QR_ACCESS"


class ChannelStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


DEFAULT_ACCESSOR = "Personal medico"


def build_sms_body(
    kind: AlertKind,
    patient_name: str,
    lat: float,
    lon: float,
    accessor_name: str | None = None,
    nearest_hospital: str | None = None,
) -> str:
    maps_url = google_maps_url(lat, lon)
    if kind == AlertKind.PANIC:
        lines = [
            "ALERTA VIDA - EMERGENCIA",
            "",
            f"{patient_name} ha activado el boton de panico.",
            "",
            f"Ubicacion: {maps_url}",
        ]
        if nearest_hospital:
            lines += ["", f"Hospital mas cercano: {nearest_hospital}"]
        lines += ["", "Por favor, contacte inmediatamente."]
    else:
        lines = [
            "ALERTA VIDA",
            "",
            f"Se ha accedido a la informacion medica de {patient_name}.",
            "",
            f"Acceso por: {accessor_name or DEFAULT_ACCESSOR}",
            f"Ubicacion: {maps_url}",
        ]
        if nearest_hospital:
            lines += ["", f"Hospital cercano: {nearest_hospital}"]
        lines += ["", "Este es un acceso autorizado de emergencia."]
    return "\n".join(lines)


def build_email_subject(kind: AlertKind, patient_name: str) -> str:
    if kind == AlertKind.PANIC:
        return f"ALERTA EMERGENCIA - {patient_name} ha activado el botón de pánico"
    return f"ALERTA VIDA - Acceso a información médica de {patient_name}"


def _hospital_rows(hospitals: list[dict]) -> str:
    rows = []
    for h in hospitals:
        name = escape(str(h.get("name", "")))
        distance = float(h.get("distance_km") or 0.0)
        phone = h.get("phone")
        call = (
            f'<a href="tel:{escape(str(phone), quote=True)}" '
            f'style="background:#dc2626;color:white;padding:8px 16px;'
            f'border-radius:20px;text-decoration:none;">Llamar</a>'
            if phone else ""
        )
        rows.append(
            '<tr style="border-bottom:1px solid #e5e7eb;">'
            f'<td style="padding:10px 0;"><strong>{name}</strong><br>'
            f'<span style="color:#6b7280;font-size:14px;">A {distance:.1f} km</span></td>'
            f'<td style="text-align:right;padding:10px 0;">{call}</td>'
            "</tr>"
        )
    return "".join(rows)


def build_email_html(
    kind: AlertKind,
    patient_name: str,
    lat: float,
    lon: float,
    sent_at: datetime,
    accessor_name: str | None = None,
    nearest_hospital: str | None = None,
    nearby_hospitals: list[dict] | None = None,
) -> str:
    is_panic = kind == AlertKind.PANIC
    name = escape(patient_name)
    maps_url = escape(google_maps_url(lat, lon), quote=True)
    header_color = "#dc2626" if is_panic else "#f59e0b"
    title = "EMERGENCIA" if is_panic else "ALERTA VIDA"

    if is_panic:
        intro = (
            f"<strong>{name}</strong> ha activado el botón de pánico "
            "y necesita ayuda inmediata."
        )
    else:
        intro = f"Se ha accedido a la información médica de <strong>{name}</strong>."

    accessor_html = ""
    if not is_panic and accessor_name:
        accessor_html = (
            '<p style="color:#6b7280;"><strong>Acceso realizado por:</strong> '
            f"{escape(accessor_name)}</p>"
        )

    nearest_html = ""
    if nearest_hospital:
        nearest_html = (
            '<p style="color:#6b7280;margin-top:10px;">Hospital más cercano: '
            f"<strong>{escape(nearest_hospital)}</strong></p>"
        )

    hospitals_html = ""
    if nearby_hospitals:
        hospitals_html = (
            '<h3 style="color:#0284c7;margin-top:20px;">Hospitales Cercanos:</h3>'
            '<table style="width:100%;border-collapse:collapse;">'
            f"{_hospital_rows(nearby_hospitals)}</table>"
        )

    return (
        '<!DOCTYPE html><html><head><meta charset="utf-8"></head>'
        '<body style="font-family:sans-serif;margin:0;padding:20px;background:#f3f4f6;">'
        '<div style="max-width:600px;margin:0 auto;background:white;border-radius:16px;">'
        f'<div style="background:{header_color};color:white;padding:24px;text-align:center;">'
        f'<h1 style="margin:0;font-size:24px;">{title}</h1></div>'
        '<div style="padding:24px;">'
        f'<p style="font-size:18px;color:#1f2937;">{intro}</p>'
        f"{accessor_html}"
        '<div style="background:#f9fafb;border-radius:12px;padding:16px;margin:20px 0;">'
        '<h3 style="color:#374151;margin:0 0 10px 0;">Ubicación</h3>'
        f'<a href="{maps_url}" style="background:#2563eb;color:white;padding:12px 24px;'
        'border-radius:8px;text-decoration:none;">Ver en Google Maps</a>'
        f"{nearest_html}</div>"
        f"{hospitals_html}"
        '<p style="color:#9ca3af;font-size:14px;margin-top:24px;">'
        "Este mensaje fue enviado automáticamente por el Sistema VIDA.<br>"
        f"{sent_at.strftime('%d/%m/%Y %H:%M')} UTC</p>"
        "</div></div></body></html>"
    )
