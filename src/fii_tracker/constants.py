"""Static reference data."""

DEFAULT_SEGMENT = "Outros"

# Fallback segment for well-known FIIs when the fundamentals feed has none
STATIC_FII_SECTORS: dict[str, str] = {
    "MXRF11": "Papel",
    "KNCR11": "Papel",
    "CPTS11": "Papel",
    "HGLG11": "Logística",
    "BTLG11": "Logística",
    "XPLG11": "Logística",
    "VISC11": "Shoppings",
    "XPML11": "Shoppings",
    "HSML11": "Shoppings",
    "KNRI11": "Híbrido",
    "HGRU11": "Híbrido",
    "HGBS11": "Shoppings",
    "PVBI11": "Lajes Corporativas",
    "HGRE11": "Lajes Corporativas",
}
