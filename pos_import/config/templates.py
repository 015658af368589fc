from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from ..models.entity_type import EntityType, UnknownEntityType
from ..models.template import TemplateColumn, TemplateDefinition

"""Template registry: the single source of truth for import workbook layouts.

Both the parser and the error-file writer read column order from here, so a
column reorder only ever touches this module.
"""

__all__ = [
    "ERROR_COLUMN_HEADER",
    "TEMPLATES",
    "get_template",
    "list_required_columns",
]

ERROR_COLUMN_HEADER = "Errores"

_INSTRUCTION = (
    "No cambies el nombre ni el orden de las columnas. Las columnas con * son "
    "obligatorias. Empezá a cargar datos en la fila 4."
)
_SHEET_NAME = "Datos"


def _col(header: str, description: str, required: bool = False, target: str | None = None) -> TemplateColumn:
    return TemplateColumn(header=header, description=description, required=required, target_field=target)


_PRODUCTS = TemplateDefinition(
    sheet_name=_SHEET_NAME,
    instruction=_INSTRUCTION,
    columns=(
        _col("Código SKU *", "Código SKU único del producto (obligatorio).", True, "sku"),
        _col("Nombre *", "Nombre del producto (obligatorio).", True, "name"),
        _col("Descripción", "Descripción del producto (opcional).", target="description"),
        _col("Categoría *", "Categoría principal (obligatorio).", True),  # -> category_id
        _col("Subcategoría", "Subcategoría (opcional)."),  # -> category_id (child)
        _col("Código de barras", "Código de barras (opcional).", target="barcode"),
        _col("Costo sin IVA", "Costo sin IVA (opcional, ej: 1.000,50).", target="cost"),
        _col("Precio con IVA", "Precio con IVA (opcional, ej: 1.210,50).", target="price"),
        _col("Margen de ganancia %", "Margen de ganancia % (opcional, ej: 21).", target="margin_percentage"),
        _col(
            "Alícuota IVA",
            "Seleccioná la alícuota IVA: 0%, 10.5%, 21%, 27%, 5% o 2.5%.",
            target="tax_rate",
        ),
        _col("Proveedor", "Proveedor principal (opcional)."),  # -> default_supplier_id
        _col("Activo", "Ingresá SI o NO para indicar si el producto está activo.", target="active"),
        _col("Visibilidad", "Ingresá ambos, ventas o compras.", target="visibility"),
        _col("Tipo de producto", "Ingresá producto, servicio o combo.", target="product_type"),
        _col("Imagen URL", "URL de imagen del producto (opcional).", target="image_url"),
    ),
)

_STOCK = TemplateDefinition(
    sheet_name=_SHEET_NAME,
    instruction=_INSTRUCTION,
    columns=(
        _col("Código SKU *", "SKU del producto (obligatorio).", True, "sku"),
        _col("Depósito/ubicación", "Depósito o ubicación (opcional)."),  # -> location_id
        _col("Cantidad *", "Cantidad a ajustar (obligatorio).", True, "quantity"),
    ),
)

_PRICES = TemplateDefinition(
    sheet_name=_SHEET_NAME,
    instruction=_INSTRUCTION,
    columns=(
        _col("Código SKU *", "SKU del producto (obligatorio).", True, "sku"),
        _col("Costo sin IVA", "Costo sin IVA (opcional, ej: 1.000,50).", target="cost"),
        _col("Precio con IVA", "Precio con IVA (opcional, ej: 1.210,50).", target="price"),
        _col("Margen %", "Margen porcentual (opcional, ej: 21).", target="margin_percentage"),
        _col(
            "Lista de Precios",
            "Lista de precios manual (opcional, dejá en blanco para actualizar el precio base).",
        ),  # -> price_list_id
    ),
)

_CUSTOMERS = TemplateDefinition(
    sheet_name=_SHEET_NAME,
    instruction=_INSTRUCTION,
    columns=(
        _col("Nombre *", "Nombre o razón social (obligatorio).", True, "name"),
        _col("Nombre comercial", "Nombre de fantasía (opcional).", target="trade_name"),
        _col("Tipo documento", "DNI, CUIT o CUIL.", target="tax_id_type"),
        _col("Nº documento", "Número de documento.", target="tax_id"),
        _col("Condición IVA", "Consumidor Final, Monotributista, Resp. Inscripto, etc.", target="tax_category"),
        _col("Email", "Email de contacto.", target="email"),
        _col("Teléfono", "Teléfono de contacto.", target="phone"),
        _col("Dirección", "Dirección (calle y número).", target="street_address"),
        _col("Localidad", "Ciudad o localidad.", target="city"),
        _col("Provincia", "Provincia.", target="province"),
        _col("Código postal", "Código postal.", target="postal_code"),
    ),
)

_SUPPLIERS = TemplateDefinition(
    sheet_name=_SHEET_NAME,
    instruction=_INSTRUCTION,
    columns=(
        _col("Nombre *", "Nombre o razón social (obligatorio).", True, "name"),
        _col("Nombre comercial", "Nombre de fantasía (opcional).", target="trade_name"),
        _col("CUIT", "CUIT del proveedor.", target="tax_id"),
        _col("Contacto", "Persona de contacto.", target="contact_person"),
        _col("Email", "Email de contacto.", target="email"),
        _col("Teléfono", "Teléfono.", target="phone"),
        _col("Dirección", "Dirección.", target="street_address"),
        _col("Localidad", "Ciudad o localidad.", target="city"),
        _col("Provincia", "Provincia.", target="province"),
        _col("Notas", "Notas adicionales.", target="notes"),
    ),
)

TEMPLATES: Mapping[EntityType, TemplateDefinition] = MappingProxyType({
    EntityType.PRODUCTS: _PRODUCTS,
    EntityType.STOCK: _STOCK,
    EntityType.PRICES: _PRICES,
    EntityType.CUSTOMERS: _CUSTOMERS,
    EntityType.SUPPLIERS: _SUPPLIERS,
})


def get_template(entity_type: EntityType | str) -> TemplateDefinition:
    """Return the template for an entity type.

    Raises:
        UnknownEntityType: tag is not one of the five supported entity types
    """
    et = EntityType.parse(entity_type)
    try:
        return TEMPLATES[et]
    except KeyError as e:  # pragma: no cover (registry covers every member)
        raise UnknownEntityType(entity_type) from e


def list_required_columns(entity_type: EntityType | str) -> list[TemplateColumn]:
    return [c for c in get_template(entity_type).columns if c.required]
