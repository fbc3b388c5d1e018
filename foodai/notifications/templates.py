"""Transactional email templates"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from html import escape
from typing import List, Optional

from foodai.reservations.schedule import format_schedule

BRAND = "FoodAI"


@dataclass
class DishLine:
    name: str
    category: Optional[str]
    price_cents: int
    quantity: int

    @property
    def total(self) -> str:
        return f"${self.price_cents * self.quantity / 100:.2f}"


@dataclass
class ReservationDetails:
    """Everything a reservation email can show"""
    reservation_date: Optional[date]
    reservation_time: Optional[time]
    guests_count: int
    restaurant_name: Optional[str] = None
    special_request: Optional[str] = None
    reason_cancellation: Optional[str] = None
    reschedule_reason: Optional[str] = None
    previous_date: Optional[date] = None
    previous_time: Optional[time] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    dishes: List[DishLine] = field(default_factory=list)


@dataclass
class RenderedEmail:
    subject: str
    html: str


@dataclass
class Section:
    heading: str
    content: str


def build_base_email(
    preheader: str,
    title: str,
    greeting: str,
    intro_lines: List[str],
    highlight: Optional[tuple] = None,
    sections: Optional[List[Section]] = None,
    footer_note: Optional[str] = None,
) -> str:
    """
    Shared layout: header band, greeting, highlighted block, detail sections
    and footer. Arguments are trusted HTML; escape user data before passing.
    """
    intro_html = "".join(
        f'<p style="margin: 12px 0; color: #1f2933;">{line}</p>' for line in intro_lines
    )

    highlight_html = ""
    if highlight:
        label, value = highlight
        highlight_html = (
            '<div style="background: linear-gradient(135deg, #ede9fe, #e0f2fe); border-radius: 16px; padding: 20px; margin: 24px 0;">'
            f'<p style="margin: 0; text-transform: uppercase; font-size: 12px; letter-spacing: 0.12em; color: #475569;">{label}</p>'
            f'<p style="margin: 8px 0 0; font-size: 20px; font-weight: 600; color: #0f172a;">{value}</p>'
            "</div>"
        )

    sections_html = "".join(
        '<div style="margin: 20px 0; padding: 20px; border-radius: 16px; border: 1px solid #e2e8f0; background: #f8fafc;">'
        f'<h3 style="margin: 0 0 12px; font-size: 16px; color: #0f172a;">{section.heading}</h3>'
        f'<p style="margin: 0; color: #1f2933;">{section.content}</p>'
        "</div>"
        for section in sections or []
    )

    footer = footer_note or (
        f"Gracias por confiar en {BRAND}. Estamos construyendo experiencias memorables alrededor de cada comida."
    )

    return f"""<!DOCTYPE html>
<html lang="es">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{escape(title)}</title>
  </head>
  <body style="margin: 0; padding: 0; background: linear-gradient(160deg, #0f172a, #1e293b); font-family: 'Inter', system-ui, sans-serif;">
    <div style="width: 100%; padding: 32px 16px;">
      <span style="display: none; visibility: hidden; opacity: 0; height: 0; width: 0;">{preheader}</span>
      <table style="max-width: 560px; margin: 0 auto; border-radius: 24px; overflow: hidden;">
        <tr>
          <td style="padding: 32px; background: rgba(15, 23, 42, 0.85);">
            <div style="display: inline-block; padding: 10px 18px; border-radius: 999px; background: linear-gradient(135deg, #3b82f6, #8b5cf6); color: #f8fafc; font-weight: 600; text-transform: uppercase; font-size: 11px;">{BRAND}</div>
            <h1 style="margin: 24px 0 0; color: #f8fafc; font-size: 24px;">{title}</h1>
          </td>
        </tr>
        <tr>
          <td style="padding: 32px; background: #f8fafc;">
            <p style="margin: 0; font-weight: 600; color: #0f172a;">{greeting}</p>
            {intro_html}
            {highlight_html}
            {sections_html}
            <div style="margin-top: 32px; text-align: center;">
              <p style="margin: 0; color: #64748b; font-size: 12px; line-height: 18px;">{footer}</p>
              <p style="margin: 16px 0 0; color: #cbd5f5; font-size: 10px;">&copy; {datetime.now().year} {BRAND}. Todos los derechos reservados.</p>
            </div>
          </td>
        </tr>
      </table>
    </div>
  </body>
</html>"""


def _details_block(details: ReservationDetails, locale: str, include_reason: bool = False) -> str:
    date_label, time_label = format_schedule(details.reservation_date, details.reservation_time, locale)
    lines = [
        f"<strong>Fecha:</strong> {escape(date_label)}",
        f"<strong>Hora:</strong> {escape(time_label)}",
        f"<strong>Personas:</strong> {details.guests_count}",
    ]
    if details.special_request:
        lines.append(f"<strong>Notas especiales:</strong> {escape(details.special_request)}")
    if include_reason and details.reason_cancellation:
        lines.append(f"<strong>Motivo:</strong> {escape(details.reason_cancellation)}")
    return "<br/>".join(lines)


def _dishes_block(dishes: List[DishLine]) -> str:
    items = "".join(
        f"<li><strong>{escape(dish.name)}</strong> x {dish.quantity} "
        f"({escape(dish.category or 'General')}) - {dish.total}</li>"
        for dish in dishes
    )
    return (
        "Has pre-seleccionado los siguientes platos de interés:<br/>"
        f'<ul style="margin: 8px 0; padding-left: 20px;">{items}</ul>'
        '<em style="font-size: 12px; color: #64748b;">Podrás confirmar o modificar tu selección al momento de tu visita.</em>'
    )


def reservation_created(name: str, details: ReservationDetails, locale: str = "es") -> RenderedEmail:
    safe_name = escape(name)
    restaurant = escape(details.restaurant_name or "Por confirmar")
    date_label, time_label = format_schedule(details.reservation_date, details.reservation_time, locale)

    sections = [Section("Detalles de la experiencia", _details_block(details, locale))]
    if details.dishes:
        sections.append(Section("Platos seleccionados", _dishes_block(details.dishes)))
    sections.append(
        Section(
            "¿Qué sigue?",
            "Te notificaremos automáticamente cuando el restaurante confirme tu mesa. "
            f"También podrás consultar y gestionar tus reservas desde tu panel en {BRAND}.",
        )
    )

    return RenderedEmail(
        subject=f"Tu reserva en {details.restaurant_name or BRAND} está en camino",
        html=build_base_email(
            preheader=f"Reserva para {escape(date_label)} a las {escape(time_label)}",
            title="Reserva registrada con éxito",
            greeting=f"Hola {safe_name},",
            intro_lines=[
                "Hemos recibido tu solicitud de reserva y ya estamos coordinando con el restaurante para confirmarla.",
                "A continuación, un resumen para que tengas todo a mano.",
            ],
            highlight=("Restaurante", restaurant),
            sections=sections,
        ),
    )


STATUS_COPY = {
    "confirmed": {
        "subject": "¡Tu mesa en {restaurant} está confirmada!",
        "title": "Reserva confirmada",
        "intro": [
            "El restaurante ha confirmado tu reserva. Ya puedes prepararte para una experiencia deliciosa.",
            "Estos son los detalles finales, listos para compartir o guardar.",
        ],
        "label": "Estado confirmado",
        "footer": f"No olvides llegar unos minutos antes. Si necesitas ajustar algo, puedes hacerlo desde tu panel en {BRAND}.",
    },
    "cancelled": {
        "subject": "Tu reserva en {restaurant} ha sido cancelada",
        "title": "Reserva cancelada",
        "intro": ["Hemos procesado la cancelación de tu reserva."],
        "label": "Reserva cancelada",
        "footer": "Esperamos verte pronto de vuelta. Cuando estés listo, podrás crear una nueva reserva en segundos.",
    },
    "completed": {
        "subject": "Esperamos que hayas disfrutado en {restaurant}",
        "title": "¡Gracias por visitarnos!",
        "intro": [
            f"Tu reserva ha sido marcada como completada. Gracias por confiar en {BRAND} para crear momentos memorables.",
            "No olvides marcar tus lugares favoritos y compartir tu experiencia.",
        ],
        "label": "Experiencia completada",
        "footer": f"Comparte tu experiencia y ayuda a otros exploradores de {BRAND} a descubrir lugares increíbles.",
    },
}


def reservation_status(name: str, details: ReservationDetails, status: str, locale: str = "es") -> RenderedEmail:
    copy = STATUS_COPY[status]
    subject = copy["subject"].format(restaurant=details.restaurant_name or BRAND)

    intro = list(copy["intro"])
    if status == "cancelled":
        intro.append(
            f"Motivo enviado: {escape(details.reason_cancellation)}"
            if details.reason_cancellation
            else "Si fue un cambio de planes, estaremos aquí cuando quieras reagendar."
        )

    return RenderedEmail(
        subject=subject,
        html=build_base_email(
            preheader=escape(subject),
            title=copy["title"],
            greeting=f"Hola {escape(name)},",
            intro_lines=intro,
            highlight=(copy["label"], escape(details.restaurant_name or f"Restaurante {BRAND}")),
            sections=[
                Section(
                    "Detalles relevantes",
                    _details_block(details, locale, include_reason=status == "cancelled"),
                )
            ],
            footer_note=copy["footer"],
        ),
    )


def reservation_rescheduled(name: str, details: ReservationDetails, locale: str = "es") -> RenderedEmail:
    sections = [Section("Nuevo horario", _details_block(details, locale))]
    if details.previous_date:
        old_date, old_time = format_schedule(details.previous_date, details.previous_time, locale)
        sections.append(Section("Horario anterior", f"{escape(old_date)} a las {escape(old_time)}"))
    if details.reschedule_reason:
        sections.append(Section("Motivo del cambio", escape(details.reschedule_reason)))

    date_label, time_label = format_schedule(details.reservation_date, details.reservation_time, locale)
    subject = f"Tu reserva en {details.restaurant_name or BRAND} ha sido modificada"
    return RenderedEmail(
        subject=subject,
        html=build_base_email(
            preheader=f"Nuevo horario: {escape(date_label)} a las {escape(time_label)}",
            title="Reserva modificada",
            greeting=f"Hola {escape(name)},",
            intro_lines=[
                "Hemos actualizado la fecha y hora de tu reserva.",
                "El estado de tu reserva no cambia; te esperamos en el nuevo horario.",
            ],
            highlight=("Nuevo horario", f"{escape(date_label)} · {escape(time_label)}"),
            sections=sections,
        ),
    )


def welcome(name: str, role: str) -> RenderedEmail:
    is_restaurant = role == "restaurant"
    subject = (
        f"Bienvenido al ecosistema {BRAND} para restaurantes"
        if is_restaurant
        else f"Bienvenido a {BRAND}, tu mesa te espera"
    )

    if is_restaurant:
        intro = [
            f"Gracias por elegir {BRAND} para transformar la experiencia de tu restaurante.",
            "Desde hoy cuentas con herramientas para recibir reservas en segundos, gestionar tu menú y entender a tus comensales.",
        ]
        highlight = ("Tu cuenta está activa", "Panel de restaurante habilitado")
        sections = [
            Section(
                "¿Qué puedes hacer a continuación?",
                "Completa el perfil de tu restaurante, configura tus horarios y comienza a aceptar reservas.",
            ),
        ]
    else:
        intro = [
            "¡Tu aventura gastronómica personalizada comienza ahora!",
            f"En {BRAND} podrás descubrir restaurantes únicos y reservar en tiempo real.",
        ]
        highlight = ("Tu cuenta está activa", "Experiencia personalizada desbloqueada")
        sections = [
            Section(
                "Control total de tus reservas",
                "Agenda en segundos, recibe confirmaciones instantáneas y mantén un historial de tus visitas.",
            ),
        ]

    return RenderedEmail(
        subject=subject,
        html=build_base_email(
            preheader=escape(subject),
            title=subject,
            greeting=f"Hola {escape(name)},",
            intro_lines=intro,
            highlight=highlight,
            sections=sections,
        ),
    )


def restaurant_new_reservation(restaurant_name: str, details: ReservationDetails, locale: str = "es") -> RenderedEmail:
    customer = details.customer_name or details.customer_email or "Cliente"
    customer_email = details.customer_email or "No proporcionado"
    date_label, time_label = format_schedule(details.reservation_date, details.reservation_time, locale)

    content = "<br/>".join(
        [
            _details_block(details, locale),
            f"<strong>Cliente:</strong> {escape(customer)}",
            f'<strong>Email del cliente:</strong> <a href="mailto:{escape(customer_email)}">{escape(customer_email)}</a>',
        ]
    )
    sections = [Section("Detalles de la reserva", content)]
    if details.dishes:
        sections.append(Section("Platos pre-seleccionados por el cliente", _dishes_block(details.dishes)))

    return RenderedEmail(
        subject=f"Nueva reserva recibida - {customer}",
        html=build_base_email(
            preheader=f"Nueva reserva de {escape(customer)} para {escape(date_label)} a las {escape(time_label)}",
            title="Nueva reserva recibida",
            greeting=f"Hola equipo de {escape(restaurant_name)},",
            intro_lines=[
                "Tienen una nueva reserva esperando confirmación en su restaurante.",
                "A continuación encontrarán todos los detalles para preparar una experiencia excepcional.",
            ],
            highlight=("Cliente", escape(customer)),
            sections=sections,
            footer_note=f"Por favor confirma o rechaza esta reserva desde tu panel de {BRAND}.",
        ),
    )
