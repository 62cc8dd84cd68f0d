"""Template resolution for restaurant pages.

Restaurants store a free-text template identifier entered by operators. This
module maps any identifier to one of the fixed presentation templates: an exact
id match wins, then the first template (in table order) with a keyword found in
the identifier, then the default template. Resolution never fails.
"""

import logging
from typing import Literal

from menu_view_service.models.menu_models import Template, TemplateVariant

logger = logging.getLogger(__name__)


def _template(
    variant: TemplateVariant,
    name: str,
    keywords: list[str],
    description: str | None = None,
) -> Template:
    return Template(
        id=f"template-{variant.value}",
        name=name,
        component=variant,
        keywords=tuple(keywords),
        description=description,
    )


# Declaration order is the keyword tie-break order
TEMPLATES: dict[str, Template] = {
    "DEFAULT": _template(
        TemplateVariant.DEFAULT,
        "Plantilla por defecto",
        ["default", "template-default"],
    ),
    "CHRISTMAS": _template(
        TemplateVariant.CHRISTMAS,
        "Navidad",
        ["christmas", "template-christmas"],
    ),
    "HALLOWEEN": _template(
        TemplateVariant.HALLOWEEN,
        "halloween",
        ["halloween", "template-halloween"],
        "Tema oscuro y espeluznante para Halloween",
    ),
    "VELITAS": _template(
        TemplateVariant.VELITAS,
        "Día de las Velitas",
        ["velitas", "template-velitas"],
        "Tema navideño temprano con velas, blanco y dorado",
    ),
    "INDEPENDENCE": _template(
        TemplateVariant.INDEPENDENCE,
        "Día de la Independencia",
        ["independencia", "20 julio", "patria", "tricolor", "colombia", "template-independence"],
        "Tema patriótico con colores de la bandera colombiana",
    ),
    "EASTER": _template(
        TemplateVariant.EASTER,
        "Semana Santa",
        ["semana santa", "easter", "pascua", "cuaresma", "morado", "template-easter"],
        "Tema sobrio y elegante para Semana Santa",
    ),
    "MOTHERS_DAY": _template(
        TemplateVariant.MOTHERS_DAY,
        "Día de la Madre",
        ["día de la madre", "mothers day", "madre", "flores", "rosa", "template-mothers-day"],
        "Tema romántico con flores y colores suaves",
    ),
    "FATHERS_DAY": _template(
        TemplateVariant.FATHERS_DAY,
        "Día del Padre",
        ["día del padre", "fathers day", "padre", "azul", "elegante", "template-fathers-day"],
        "Tema elegante y masculino para el Día del Padre",
    ),
    "VALENTINE": _template(
        TemplateVariant.VALENTINE,
        "San Valentín",
        [
            "san valentín",
            "valentine",
            "valentines",
            "amor",
            "romántico",
            "14 febrero",
            "template-valentine",
        ],
        "Tema romántico con corazones y colores cálidos",
    ),
    "ELEGANT": _template(
        TemplateVariant.ELEGANT,
        "Elegante",
        ["elegante", "elegant", "minimalista", "sofisticado", "premium", "lujo", "template-elegant"],
        "Diseño minimalista y sofisticado en negro, blanco y dorado",
    ),
    "TROPICAL": _template(
        TemplateVariant.TROPICAL,
        "Tropical",
        ["tropical", "verano", "playa", "verde", "azul", "fresco", "template-tropical"],
        "Tema fresco y vibrante inspirado en el trópico",
    ),
    "DARK": _template(
        TemplateVariant.DARK,
        "Oscuro",
        ["oscuro", "dark", "dark mode", "negro", "modo oscuro", "template-dark"],
        "Tema oscuro moderno con acentos de color",
    ),
    "COLORFUL": _template(
        TemplateVariant.COLORFUL,
        "Colorido",
        ["colorido", "colorful", "vibrante", "arcoíris", "alegre", "template-colorful"],
        "Diseño alegre y vibrante con múltiples colores",
    ),
    "ROMANTIC": _template(
        TemplateVariant.ROMANTIC,
        "Romántico",
        ["romántico", "romantic", "suave", "delicado", "rosa", "template-romantic"],
        "Tema suave y delicado con tonos pastel",
    ),
}

DEFAULT_TEMPLATE = TEMPLATES["DEFAULT"]

FESTIVITIES = (
    "CHRISTMAS",
    "HALLOWEEN",
    "VELITAS",
    "INDEPENDENCE",
    "EASTER",
    "MOTHERS_DAY",
    "FATHERS_DAY",
    "VALENTINE",
)
THEMES = ("DEFAULT", "ELEGANT", "TROPICAL", "DARK", "COLORFUL", "ROMANTIC")


def get_template_by_id(template_id: str) -> Template | None:
    """Get a template by its exact, case-sensitive id.

    Args:
        template_id: Template identifier (e.g. "template-christmas")

    Returns:
        Template if found, None otherwise
    """
    for template in TEMPLATES.values():
        if template.id == template_id:
            return template
    return None


def get_template_by_name(name: str) -> Template | None:
    """Get a template by its display name, ignoring case."""
    lowered = name.lower()
    for template in TEMPLATES.values():
        if template.name.lower() == lowered:
            return template
    return None


def resolve_template(template_id: str | None) -> Template:
    """Resolve a stored template identifier to a concrete template.

    Resolution order, first match wins:
    1. Exact id match
    2. Any keyword contained in the lowercased identifier, templates in table order
    3. The default template

    Args:
        template_id: Free-text identifier from the restaurant document

    Returns:
        Template: Always one of the fixed templates
    """
    if not template_id:
        return DEFAULT_TEMPLATE

    by_id = get_template_by_id(template_id)
    if by_id is not None:
        return by_id

    lowered = template_id.lower()
    for template in TEMPLATES.values():
        if any(keyword.lower() in lowered for keyword in template.keywords):
            logger.debug(f"Resolved template {template_id!r} by keyword to {template.id}")
            return template

    logger.debug(f"No template matches {template_id!r}, using default")
    return DEFAULT_TEMPLATE


def get_template_component(template_id: str | None) -> TemplateVariant:
    """Get the presentation variant to render for a stored template identifier."""
    return resolve_template(template_id).component


def get_all_templates() -> list[Template]:
    """Get all templates in table order."""
    return list(TEMPLATES.values())


def get_templates_by_category(category: Literal["festivities", "themes"]) -> list[Template]:
    """Get templates grouped as seasonal festivities or visual themes.

    Args:
        category: "festivities" or "themes"

    Returns:
        list: Templates of the group in group order
    """
    keys = FESTIVITIES if category == "festivities" else THEMES
    return [TEMPLATES[key] for key in keys if key in TEMPLATES]
