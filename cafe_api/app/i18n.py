from __future__ import annotations

"""Customer-facing strings in Indonesian (default) and English.

Messages are keyed by error code or step name and rendered with
``str.format`` parameters. Money parameters are formatted as rupiah.
"""

from typing import Any, Dict

SUPPORTED = ("id", "en")

# Parameters rendered with :func:`format_rupiah`.
MONEY_PARAMS = {"minimum", "expected", "amount", "total", "shortfall"}

CATALOG: Dict[str, Dict[str, Dict[str, str]]] = {
    "id": {
        "errors": {
            "VALIDATION_ERROR": "Data yang dikirim tidak valid",
            "NOT_FOUND": "Data tidak ditemukan",
            "CONFLICT": "Permintaan bertabrakan dengan perubahan lain",
            "INTERNAL_ERROR": "Terjadi kesalahan pada server",
            "TENANT_REQUIRED": "Header X-Tenant-ID wajib diisi",
            "TENANT_INVALID": "Header X-Tenant-ID tidak valid",
            "STAFF_REQUIRED": "Header X-Staff-ID wajib diisi",
            "MISSING_FIELDS": "Data wajib belum lengkap: {fields}",
            "INVALID_TABLE": "Meja {table} tidak ditemukan",
            "INVALID_MENU_ITEM": "Menu {menu_item_id} tidak ditemukan",
            "MENU_ITEM_UNAVAILABLE": "Menu {name} sedang tidak tersedia",
            "INVALID_CUSTOMIZATION": "Pilihan {option} untuk {group} tidak tersedia",
            "PROMO_NOT_FOUND": "Kode promo tidak ditemukan",
            "PROMO_EXPIRED": "Kode promo sudah tidak berlaku",
            "BELOW_MINIMUM_PURCHASE": "Minimum pemesanan {minimum}",
            "USAGE_LIMIT_REACHED": "Kuota promo sudah habis",
            "TABLE_OCCUPIED": "Meja {table} sedang digunakan",
            "INVALID_TRANSITION": "Status pesanan tidak dapat diubah dari {current} ke {target}",
            "ORDER_NOT_FOUND": "Pesanan tidak ditemukan",
            "ORDER_ITEM_NOT_FOUND": "Item pesanan tidak ditemukan",
            "PAYMENT_NOT_FOUND": "Pembayaran tidak ditemukan",
            "PAYMENT_METHOD_INVALID": "Metode pembayaran {method} tidak didukung",
            "AMOUNT_MISMATCH": "Jumlah pembayaran {amount} tidak sesuai dengan total pesanan {expected}",
            "ORDER_NOT_PAYABLE": "Pesanan dengan status {status} tidak dapat dibayar",
            "PROOF_NOT_ACCEPTED": "Bukti pembayaran tidak diperlukan untuk pembayaran ini",
            "INVALID_PROOF_IMAGE": "File bukti pembayaran bukan gambar yang valid",
            "PROOF_TOO_LARGE": "Ukuran file maksimal {max_mb}MB",
            "PROOF_TYPE_NOT_ALLOWED": "Format file harus JPG, PNG, atau WebP",
            "RATING_OUT_OF_RANGE": "Rating harus antara 1-5",
            "DUPLICATE_RATING": "Rating sudah pernah diberikan untuk pesanan ini",
            "COMPENSATION_FAILED": "Gagal membuat pesanan dan data belum dapat dibersihkan",
        },
        "steps": {
            "created": "Pesanan Diterima",
            "awaiting_payment": "Menunggu Pembayaran",
            "payment_verification": "Menunggu Verifikasi Pembayaran",
            "payment_verified": "Pembayaran Diverifikasi",
            "confirmed": "Pesanan Dikonfirmasi Dapur",
            "preparing": "Sedang Diproses di Dapur",
            "ready": "Siap Disajikan",
            "delivered": "Diantar ke Meja",
            "picked_up": "Pesanan Diambil",
            "completed": "Pesanan Selesai",
            "cancelled": "Pesanan Dibatalkan",
        },
        "instructions": {
            "cash": "Silakan bayar tunai kepada kasir",
            "card": "Silakan bayar dengan kartu di kasir",
            "qris": "Scan QRIS dan masukkan nominal {amount} secara manual",
            "transfer": "Transfer tepat {amount} dan cantumkan kode referensi {reference_code} pada berita transfer",
            "amount_exact": "Nominal harus sama persis",
            "reference_required": "Kode referensi wajib dicantumkan",
            "upload_proof": "Unggah bukti pembayaran setelah membayar",
        },
        "hints": {
            "ADD_TO_USE_PROMO": "Tambah belanja {shortfall} lagi untuk memakai promo ini",
            "USE_PAYMENT_VERIFICATION": "Gunakan endpoint verifikasi pembayaran",
            "VERIFY_PAYMENT_FIRST": "Verifikasi pembayaran sebelum mengonfirmasi pesanan",
            "KITCHEN_CONFIRMED_ONLY": "Dapur hanya memproses pesanan yang sudah dikonfirmasi",
        },
    },
    "en": {
        "errors": {
            "VALIDATION_ERROR": "The submitted data is invalid",
            "NOT_FOUND": "Not found",
            "CONFLICT": "The request conflicts with another change",
            "INTERNAL_ERROR": "Internal server error",
            "TENANT_REQUIRED": "X-Tenant-ID header is required",
            "TENANT_INVALID": "X-Tenant-ID header is invalid",
            "STAFF_REQUIRED": "X-Staff-ID header is required",
            "MISSING_FIELDS": "Missing required fields: {fields}",
            "INVALID_TABLE": "Table {table} not found",
            "INVALID_MENU_ITEM": "Menu item {menu_item_id} not found",
            "MENU_ITEM_UNAVAILABLE": "Menu item {name} is currently unavailable",
            "INVALID_CUSTOMIZATION": "Option {option} is not available for {group}",
            "PROMO_NOT_FOUND": "Promo code not found",
            "PROMO_EXPIRED": "Promo code is no longer valid",
            "BELOW_MINIMUM_PURCHASE": "Minimum order is {minimum}",
            "USAGE_LIMIT_REACHED": "Promo usage limit reached",
            "TABLE_OCCUPIED": "Table {table} is occupied",
            "INVALID_TRANSITION": "Order cannot move from {current} to {target}",
            "ORDER_NOT_FOUND": "Order not found",
            "ORDER_ITEM_NOT_FOUND": "Order item not found",
            "PAYMENT_NOT_FOUND": "Payment not found",
            "PAYMENT_METHOD_INVALID": "Payment method {method} is not supported",
            "AMOUNT_MISMATCH": "Payment amount {amount} does not match the order total {expected}",
            "ORDER_NOT_PAYABLE": "An order in status {status} cannot be paid",
            "PROOF_NOT_ACCEPTED": "This payment does not take a proof of payment",
            "INVALID_PROOF_IMAGE": "The proof of payment is not a valid image",
            "PROOF_TOO_LARGE": "Maximum file size is {max_mb}MB",
            "PROOF_TYPE_NOT_ALLOWED": "File must be JPG, PNG or WebP",
            "RATING_OUT_OF_RANGE": "Rating must be between 1 and 5",
            "DUPLICATE_RATING": "This order has already been rated",
            "COMPENSATION_FAILED": "Order creation failed and could not be cleaned up",
        },
        "steps": {
            "created": "Order Received",
            "awaiting_payment": "Awaiting Payment",
            "payment_verification": "Awaiting Payment Verification",
            "payment_verified": "Payment Verified",
            "confirmed": "Confirmed by Kitchen",
            "preparing": "Being Prepared",
            "ready": "Ready to Serve",
            "delivered": "Delivered to Table",
            "picked_up": "Picked Up",
            "completed": "Order Completed",
            "cancelled": "Order Cancelled",
        },
        "instructions": {
            "cash": "Please pay cash at the cashier",
            "card": "Please pay by card at the cashier",
            "qris": "Scan the QRIS code and enter {amount} manually",
            "transfer": "Transfer exactly {amount} and include reference code {reference_code} in the transfer note",
            "amount_exact": "The amount must match exactly",
            "reference_required": "The reference code is mandatory",
            "upload_proof": "Upload a proof of payment after paying",
        },
        "hints": {
            "ADD_TO_USE_PROMO": "Add {shortfall} more to use this promo",
            "USE_PAYMENT_VERIFICATION": "Use the payment verification endpoints",
            "VERIFY_PAYMENT_FIRST": "Verify the payment before confirming",
            "KITCHEN_CONFIRMED_ONLY": "The kitchen only works on confirmed orders",
        },
    },
}


class _SafeParams(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def format_rupiah(amount: int) -> str:
    """Format integer rupiah with dot thousands separators, e.g. ``Rp 50.000``."""

    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {abs(int(amount)):,}".replace(",", ".")


def select_language(accept_language: str | None, default: str = "id") -> str:
    """Pick the best supported language from the header."""

    if not accept_language:
        return default
    for part in accept_language.split(","):
        lang = part.split(";")[0].strip().split("-")[0].lower()
        if lang in SUPPORTED:
            return lang
    return default


def get_catalog(lang: str) -> Dict[str, Dict[str, str]]:
    """Return catalog for ``lang`` with Indonesian fallback."""

    return CATALOG.get(lang, CATALOG["id"])


def _render(template: str, params: Dict[str, Any]) -> str:
    values = _SafeParams()
    for key, value in params.items():
        if key in MONEY_PARAMS and isinstance(value, int):
            value = format_rupiah(value)
        values[key] = value
    return template.format_map(values)


def message(code: str, lang: str = "id", **params: Any) -> str:
    """Render the localized message for error ``code``."""

    errors = get_catalog(lang)["errors"]
    template = errors.get(code) or CATALOG["id"]["errors"].get(code) or code
    return _render(template, params)


def hint(key: str, lang: str = "id", **params: Any) -> str:
    """Render hint ``key``; unknown keys are returned as given."""

    hints = get_catalog(lang)["hints"]
    template = hints.get(key) or CATALOG["id"]["hints"].get(key) or key
    return _render(template, params)


def step_label(step: str, lang: str = "id") -> str:
    return get_catalog(lang)["steps"].get(step, step)


def instruction(key: str, lang: str = "id", **params: Any) -> str:
    return _render(get_catalog(lang)["instructions"][key], params)
