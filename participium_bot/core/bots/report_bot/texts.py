# participium_bot/core/bots/report_bot/texts.py
"""
Text accessor for the report bot.

``get_text(key, **params)`` looks the key up in ``TEXTS`` and applies
``str.format`` when params are given.  Unknown keys return the key itself
so a missing string shows up in the chat instead of crashing a handler.

Messages are sent as plain text (no parse_mode): user-supplied titles and
descriptions are echoed back in the summary and must not be parsed as
markup.
"""
from __future__ import annotations

TEXTS: dict[str, str] = {
    # ── Commands ────────────────────────────────────────────────────────
    "welcome": (
        "🏛 Welcome to Participium!\n\n"
        "Thank you for joining the official channel to improve the city of Turin!\n\n"
        "With this bot you can:\n"
        "• Quickly report issues in the city\n"
        "• Help make Turin a better place for everyone\n\n"
        "Type /help to discover all available commands and how to get started."
    ),
    "help": (
        "🏛 Participium Bot - Help\n\n"
        "Available Commands:\n\n"
        "🔗 /link <code>\n"
        "Link your Telegram account to Participium.\n"
        "Generate the code from your profile on the website.\n\n"
        "📝 /newreport\n"
        "Create a new report about an issue in the city.\n"
        "You will be guided through the process step by step.\n\n"
        "🔓 /unlink\n"
        "Unlink your Telegram account from Participium.\n"
        "You can link again anytime with /link\n\n"
        "❓ /help\n"
        "Display this help message.\n\n"
        "━━━━━━━━━━━━━\n\n"
        "How to Report an Issue:\n"
        "1️⃣ Use /newreport command\n"
        "2️⃣ Send the location or address\n"
        "3️⃣ Provide a title and description\n"
        "4️⃣ Select a category\n"
        "5️⃣ Attach 1-3 photos\n"
        "6️⃣ Choose privacy settings\n"
        "7️⃣ Confirm and submit\n\n"
        "💡 Need more help?\n"
        "Visit our website or contact support."
    ),

    # ── Flow preconditions ──────────────────────────────────────────────
    "err_username_required_report": (
        "⚠️ Username Required\n\n"
        "To create reports, you need to set a Telegram username in your profile.\n\n"
        "How to set a username:\n"
        "1. Open Telegram Settings\n"
        "2. Tap on your profile\n"
        "3. Add a username\n\n"
        "Try again after setting your username."
    ),
    "err_not_registered": (
        "❌ Access Denied\n\n"
        "You must be registered on the Participium platform to create reports via Telegram.\n\n"
        "Visit our website to register and link your account using the /link command."
    ),
    "err_link_not_confirmed": (
        "⏳ Confirmation Required\n\n"
        "We received your /link request, but you need to confirm it from the Participium app "
        "before sending reports.\n\n"
        "Open the app, go to Telegram linking, and tap \"I sent the code\" to finish linking."
    ),
    "err_link_not_confirmed_submit": (
        "⏳ Link not confirmed. Please open the Participium app and tap \"I sent the code\" "
        "before submitting reports."
    ),
    "err_lookup_failed": (
        "❌ Error\n\n"
        "Unable to verify your account right now. Please try again later."
    ),

    # ── Location ────────────────────────────────────────────────────────
    "q_location": (
        "📍 Report Location\n\n"
        "Please provide the location of the issue in one of the following ways:\n\n"
        "• Send your location using the attachment button\n\n"
        "• Write an address\n"
        "   Example: \"53, Corso Vittorio Emanuele II, Torino\"\n\n"
        "• Enter coordinates\n"
        "   Format: latitude, longitude\n"
        "   Example: 45.0703, 7.6869"
    ),
    "btn_send_location": "📍 Send current location",
    "ok_location_pin": "✅ Location confirmed\n\nPlease provide a title for your report.",
    "ok_location_coordinates": "✅ Coordinates validated\n\nPlease provide a title for your report.",
    "ok_location_address": "✅ Address found\n\nPlease provide a title for your report.",
    "err_pin_outside": (
        "❌ Invalid location\n\n"
        "The selected location must be within the city boundaries of Turin.\n\n"
        "Please send a valid location."
    ),
    "err_coordinates_outside": (
        "❌ Invalid coordinates\n\n"
        "The location must be within the city boundaries of Turin.\n\n"
        "Please enter valid coordinates or send a location from the map."
    ),
    "err_address_outside": (
        "❌ Address outside Turin\n\n"
        "The address must be within the city boundaries of Turin.\n\n"
        "Please try a different address, coordinates, or a location from the map."
    ),
    "err_location_failed": "❌ Error\n\nUnable to validate the location. Please try again.",
    "err_address_not_found": (
        "❌ Address not found\n\n"
        "Unable to locate the address in Turin.\n\n"
        "Please try with:\n"
        "• Coordinates (e.g., 45.0703, 7.6869)\n"
        "• A different address\n"
        "• Location from map"
    ),

    # ── Title / description / category ─────────────────────────────────
    "err_title_required": "⚠️ Title required\n\nPlease enter a descriptive title for your report.",
    "q_description": "📝 Describe the issue\n\nProvide a detailed description of the problem.",
    "err_description_required": "⚠️ Description required\n\nPlease provide a description of the issue.",
    "q_category": "🏷️ Select a category\n\nChoose the category that best describes your report:",

    # ── Photos ──────────────────────────────────────────────────────────
    "q_photos": "📸 Attach photos\n\nSend up to 3 photos of the issue.\nPress \"Done\" when finished.",
    "btn_done": "Done",
    "ok_photo_received": (
        "✅ Photo received ({count}/{max})\n\n"
        "You can send {remaining} more {noun} or press \"Done\" to continue."
    ),
    "ok_photos_full": (
        "✅ Maximum photos reached ({max}/{max})\n\n"
        "Press \"Done\" to continue with the next step."
    ),
    "err_photo_limit": "📸 Maximum {max} photos allowed.\nPress \"Done\" when finished.",
    "err_photo_required": "⚠️ Photo required\n\nPlease attach at least one photo before continuing.",
    "err_photo_fetch": "❌ Photo not received\n\nWe could not download your photo. Please send it again.",
    "err_photo_unsupported": (
        "❌ Unsupported Format\n\n"
        "Please use one of the following formats:\n"
        "• JPEG\n"
        "• PNG\n"
        "• WebP"
    ),
    "err_photo_corrupt": (
        "❌ Invalid Photo\n\n"
        "The photo is empty, damaged or larger than {max_mb} MB. Please send a different one."
    ),

    # ── Anonymity / confirmation ────────────────────────────────────────
    "q_anonymity": "👤 Privacy settings\n\nWould you like this report to be anonymous?",
    "btn_anon_yes": "Yes, keep it anonymous",
    "btn_anon_no": "No, show my name",
    "summary": (
        "📋 Report Summary\n\n"
        "Location: {latitude:.6f}, {longitude:.6f}\n\n"
        "Address: {address}\n\n"
        "Title: {title}\n\n"
        "Description: {description}\n\n"
        "Category: {category}\n\n"
        "Photos: {photo_count} attached\n\n"
        "Privacy: {privacy}\n\n"
        "━━━━━━━━━━━━━━━━━━\n\n"
        "Review the information above and confirm to submit your report."
    ),
    "summary_no_address": "Not available",
    "privacy_anonymous": "Anonymous",
    "privacy_public": "Public",
    "btn_confirm": "Confirm and Submit",
    "btn_cancel": "Cancel",
    "ok_cancelled": "❌ Report cancelled\n\nYou can create a new report at any time using /newreport",
    "ok_submitted": (
        "✅ Report successfully created!\n\n"
        "📋 Report ID: #{report_id}\n\n"
        "Your report has been submitted and will be reviewed by the municipality team. "
        "You will receive updates on its status.\n\n"
        "Thank you for contributing to improve our city!"
    ),

    # ── Submission failures ─────────────────────────────────────────────
    "err_submit_location_missing": (
        "❌ Invalid Location\n\n"
        "The location data is missing or incomplete. Please try creating the report again."
    ),
    "err_submit_coordinates": (
        "❌ Invalid Coordinates\n\n"
        "Coordinates must be valid:\n"
        "• Latitude: -90 to 90\n"
        "• Longitude: -180 to 180\n\n"
        "Please try again."
    ),
    "err_submit_outside": (
        "❌ Location Outside Turin\n\n"
        "The report location must be within the city boundaries of Turin. "
        "Please select a valid location."
    ),
    "err_submit_photo_count": (
        "❌ Invalid Photos\n\n"
        "You must attach between 1 and 3 valid photos. Please try again."
    ),
    "err_submit_photo_format": (
        "❌ Unsupported Format\n\n"
        "Please use one of the following formats:\n"
        "• JPEG\n"
        "• PNG\n"
        "• WebP"
    ),
    "err_submit_photo_corrupt": (
        "❌ Invalid Photo\n\n"
        "The photo could not be processed. Please try uploading it again."
    ),
    "err_submit_validation": (
        "❌ Error\n\n"
        "{message}\n\n"
        "Please try again or contact support if the problem persists."
    ),
    "err_submit_unauthorized": (
        "❌ Unauthorized\n\n"
        "You are not authorized to create reports. "
        "Please ensure your account is properly registered."
    ),
    "err_submit_insufficient_rights": (
        "❌ Insufficient Permissions\n\n"
        "Your account does not have the required permissions to create reports."
    ),
    "err_submit_not_found": (
        "❌ Resource Not Found\n\n"
        "Required resources could not be located. Please try again."
    ),
    "err_submit_unspecified": (
        "❌ Error Creating Report\n\n"
        "An unexpected error occurred. "
        "Please try again later or contact support if the issue persists."
    ),

    # ── Linking ─────────────────────────────────────────────────────────
    "err_username_required_link": (
        "⚠️ Username Required\n\n"
        "You need a Telegram username to link your account.\n\n"
        "Please set a username in your Telegram settings and try again."
    ),
    "link_usage": (
        "🔗 Link Your Account\n\n"
        "Usage: /link <code>\n\n"
        "Steps:\n"
        "1. Log in to the Participium website\n"
        "2. Navigate to the related section\n"
        "3. Generate a verification code\n"
        "4. Send: /link YOUR_CODE"
    ),
    "err_link_code_format": (
        "❌ Invalid Code\n\n"
        "The verification code must be exactly 6 digits.\n"
        "Please check the code and try again."
    ),
    "ok_linked": "✅ {message}",
    "err_link_failed": (
        "❌ Linking Failed\n\n"
        "Unable to link your account. This may be due to:\n"
        "• Invalid or expired code\n"
        "• Code already used\n\n"
        "Please generate a new code and try again."
    ),

    # ── Unlinking ───────────────────────────────────────────────────────
    "err_username_required_unlink": (
        "⚠️ Username Required\n\n"
        "You need a Telegram username to use this command."
    ),
    "err_not_linked": (
        "❌ Account Not Linked\n\n"
        "Your Telegram account is not linked to any Participium account."
    ),
    "q_unlink": (
        "⚠️ Unlink Account\n\n"
        "Are you sure you want to unlink your Telegram account from Participium?\n"
        "You can always link again later using /link"
    ),
    "btn_unlink_confirm": "Yes, Unlink",
    "btn_unlink_cancel": "Cancel",
    "ok_unlinked": (
        "✅ Account Unlinked\n\n"
        "Your Telegram account has been successfully unlinked from Participium.\n"
        "Use /link to connect again whenever you want."
    ),
    "err_unlink_rejected": "❌ Unlink Failed\n\n{message}",
    "err_unlink_failed": "❌ Unlink Failed\n\nUnable to unlink your account. Please try again later.",
    "err_account_not_found": "❌ Account not found.",
    "err_username_required_short": "⚠️ Username required.",
    "ok_unlink_cancelled": "❌ Cancelled\n\nYour account remains linked.",
}


def get_text(key: str, **params) -> str:
    """
    Get a message string.

    Args:
        key: Message key (e.g. ``"q_location"``, ``"err_photo_limit"``).
        **params: Values for ``str.format`` placeholders.

    Returns:
        The formatted message, or *key* itself if it is unknown.
    """
    text = TEXTS.get(key)
    if text is None:
        return key
    return text.format(**params) if params else text
