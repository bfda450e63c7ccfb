"""
utils/constants.py

Purpose: Centralized static content

- All outbound SMS texts
- Booking ID and reply parsing constants
- Upload limits and default availability

(Prevents hardcoding across the codebase)
"""

# ============================================================
# BOOKING IDENTIFIERS & REPLIES
# ============================================================

DEFAULT_BOOKING_ID_PREFIX = "BK"

# Characters taken from the end of the booking ID for SMS replies
SHORT_CODE_LENGTH = 6

# Partial codes shorter than this are never substring-matched
MIN_PARTIAL_CODE_LENGTH = 4

DEFAULT_ACCEPT_KEYWORD = "ACCEPT"

# Empty TwiML document acknowledging a webhook without replying
EMPTY_TWIML_RESPONSE = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'

# ============================================================
# AVAILABILITY
# ============================================================

DEFAULT_TIME_SLOTS = ["8:00 AM", "10:00 AM", "12:00 PM", "2:00 PM", "4:00 PM"]

# ============================================================
# PHOTO UPLOADS
# ============================================================

ALLOWED_IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif"}
ALLOWED_IMAGE_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}

# ============================================================
# NEW BOOKING
# ============================================================

BOOKING_REQUEST_EMPLOYEE_MESSAGE = """🌱 NEW BOOKING REQUEST

Customer: {customer_name}
Phone: {phone}
Address: {address}
Date: {service_date} at {service_time}
Lot Size: {lot_size}
Estimate: {estimated_price}

Instructions: {instructions}
{photos_line}
Reply "{accept_keyword} {short_code}" to accept this job.

Booking ID: {booking_id}"""

BOOKING_PHOTOS_LINE = "Photos: {count} attached\n"

BOOKING_ACK_CUSTOMER_MESSAGE = """Hi {customer_name}!

Thank you for booking with {business_name}!

Your lawn mowing request for {service_date} at {service_time} has been received.

Estimated price: {estimated_price}

One of our team members will confirm your booking within {confirmation_window_minutes} minutes. You'll receive a text when it's confirmed.

Questions? Text us back anytime!"""

# ============================================================
# CONFIRMATION
# ============================================================

BOOKING_CONFIRMED_CUSTOMER_MESSAGE = """Great news, {customer_name}!

Your lawn mowing is confirmed for {service_date} at {service_time}.

Address: {address}
Estimated price: {estimated_price}

We'll text you when we're on our way. See you soon! 🌱

- {business_name}"""

BOOKING_CONFIRMED_EMPLOYEE_MESSAGE = "✅ Booking {short_code} confirmed! Customer notified. Details saved to your schedule."

BOOKING_NOT_FOUND_MESSAGE = "❌ Booking {code} not found or already processed."

BOOKING_CODE_MISSING_MESSAGE = '❌ No booking code found. Reply "{accept_keyword} <code>" using the code from the request.'

BOOKING_UNAVAILABLE_MESSAGE = "⚠️ Booking {short_code} is no longer available. No changes were made."

BOOKING_AMBIGUOUS_MESSAGE = """⚠️ Code {code} matches {count} bookings: {candidates}

Please reply with one of these codes, e.g. "{accept_keyword} {example}"."""

NOT_PROVIDED = "None"
