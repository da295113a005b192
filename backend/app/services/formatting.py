"""
Helpers de presentacion para los limites de subida.

Convierten bytes y timestamps en textos legibles ("1.5 KB", "4m 12s")
para las respuestas de /v1/rate-limit/status y los mensajes del cliente.
No guardan estado.
"""

from app.services.rate_limiter import now_ms

UNITS = ["B", "KB", "MB", "GB"]


def format_bytes(num_bytes: int) -> str:
    """
    Formatea un tamano en la unidad mas grande cuyo valor quede en [1, 1024).

    Ejemplos:
        >>> format_bytes(0)
        '0 B'
        >>> format_bytes(1536)
        '1.5 KB'
        >>> format_bytes(20 * 1024 * 1024)
        '20.0 MB'
    """
    # Caso especial: con 0 el calculo de la unidad no tiene sentido.
    if num_bytes == 0:
        return "0 B"

    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {UNITS[unit]}"


def format_time_until_reset(reset_time: int, now: int | None = None) -> str:
    """
    Tiempo restante hasta `reset_time` (epoch ms) como texto.

    Retorna "now" si ya paso, "<m>m <s>s" si falta al menos un minuto,
    o "<s>s" en otro caso.
    """
    if now is None:
        now = now_ms()
    diff = reset_time - now
    if diff <= 0:
        return "now"

    minutes = diff // 60_000
    seconds = (diff % 60_000) // 1000
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"
