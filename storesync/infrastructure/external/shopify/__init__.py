"""
Integración de solo lectura con la Admin API de Shopify.

- `ShopifyClient`: recorre colecciones paginadas por cursor (header Link).
- `mappings`: transforma registros crudos de Shopify al esquema local; es el
  único mapeo que usan tanto el sync histórico como los webhooks.
"""
