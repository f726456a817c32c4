from spherestay.presentation.formatter import format_card, format_page, format_price, type_display_name

__all__ = ["format_card", "format_page", "format_price", "type_display_name"]
