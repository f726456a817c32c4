"""Multi-step host registration form."""

import json
import logging
import re
from dataclasses import dataclass, field

from spherestay.api.errors import ValidationError
from spherestay.session import Session

logger = logging.getLogger(__name__)

KENYAN_COUNTIES = (
    "Baringo", "Bomet", "Bungoma", "Busia", "Elgeyo Marakwet", "Embu",
    "Garissa", "Homa Bay", "Isiolo", "Kajiado", "Kakamega", "Kericho",
    "Kiambu", "Kilifi", "Kirinyaga", "Kisii", "Kisumu", "Kitui",
    "Kwale", "Laikipia", "Lamu", "Machakos", "Makueni", "Mandera",
    "Marsabit", "Meru", "Migori", "Mombasa", "Murang'a", "Nairobi",
    "Nakuru", "Nandi", "Narok", "Nyamira", "Nyandarua", "Nyeri",
    "Samburu", "Siaya", "Taita Taveta", "Tana River", "Tharaka Nithi",
    "Trans Nzoia", "Turkana", "Uasin Gishu", "Vihiga", "Wajir", "West Pokot",
)

EMAIL_RE = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")
PHONE_RE = re.compile(r"^\+?\d{10,15}$")

MIN_PASSWORD_LENGTH = 8
MAX_IMAGES = 15
MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_TYPES = ("image/jpeg", "image/png")
STEPS = (1, 2, 3, 4)

# Form attribute -> (label, upload field, main-index field)
IMAGE_FIELDS = {
    "id_front": ("ID front", "idFront", "isMainIdFront"),
    "id_back": ("ID back", "idBack", "isMainIdBack"),
    "selfie": ("Selfie", "selfie", "isMainSelfie"),
}


@dataclass
class ImageUpload:
    filename: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class Address:
    street: str = ""
    city: str = ""
    county: str = ""
    postal_code: str = ""

    def to_dict(self) -> dict:
        return {
            "street": self.street,
            "city": self.city,
            "county": self.county,
            "postalCode": self.postal_code,
        }


@dataclass
class HostRegistration:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    password: str = ""
    password_confirm: str = ""
    address: Address = field(default_factory=Address)
    role: str = "host"
    business_name: str = ""
    tax_pin: str = ""
    host_description: str = ""
    social_media: dict[str, str] = field(default_factory=dict)
    website: str = ""
    id_front: list[ImageUpload] = field(default_factory=list)
    id_back: list[ImageUpload] = field(default_factory=list)
    selfie: list[ImageUpload] = field(default_factory=list)
    main_id_front: int = 0
    main_id_back: int = 0
    main_selfie: int = 0


def _validate_personal(form: HostRegistration) -> dict[str, str]:
    errors = {}
    if not form.first_name:
        errors["firstName"] = "First name is required"
    if not form.last_name:
        errors["lastName"] = "Last name is required"
    if not form.email:
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(form.email):
        errors["email"] = "Invalid email format"
    if not form.phone:
        errors["phone"] = "Phone number is required"
    elif not PHONE_RE.match(form.phone):
        errors["phone"] = "Invalid phone number"
    if not form.password:
        errors["password"] = "Password is required"
    elif len(form.password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if not form.password_confirm:
        errors["passwordConfirm"] = "Please confirm your password"
    elif form.password_confirm != form.password:
        errors["passwordConfirm"] = "Passwords do not match"
    return errors


def _validate_address(form: HostRegistration) -> dict[str, str]:
    errors = {}
    if not form.address.street:
        errors["street"] = "Street is required"
    if not form.address.city:
        errors["city"] = "City is required"
    if not form.address.county:
        errors["county"] = "County is required"
    elif form.address.county not in KENYAN_COUNTIES:
        errors["county"] = f"Unknown county: {form.address.county}"
    return errors


def _validate_host_info(form: HostRegistration) -> dict[str, str]:
    errors = {}
    if form.role == "business" and not form.business_name:
        errors["businessName"] = "Business name is required"
    if not form.tax_pin:
        errors["taxPIN"] = "Tax PIN is required"
    if not form.host_description:
        errors["hostDescription"] = "Host description is required"
    return errors


def _validate_images(form: HostRegistration) -> dict[str, str]:
    errors = {}
    for attr, (label, wire_name, main_name) in IMAGE_FIELDS.items():
        images = getattr(form, attr)
        main_index = getattr(form, f"main_{attr}")
        if not images:
            errors[wire_name] = f"At least one {label} image is required"
            continue
        if len(images) > MAX_IMAGES:
            errors[wire_name] = f"Cannot upload more than {MAX_IMAGES} {label} images"
            continue
        if not 0 <= main_index < len(images):
            errors[main_name] = f"Exactly one {label} image must be marked as main"
        for idx, image in enumerate(images):
            if image.content_type not in IMAGE_TYPES:
                errors[f"{wire_name}{idx}"] = f"{label} image {idx + 1} must be JPEG or PNG"
            elif image.size > MAX_IMAGE_BYTES:
                errors[f"{wire_name}{idx}"] = f"{label} image {idx + 1} must be under 5MB"
    return errors


_VALIDATORS = {
    1: _validate_personal,
    2: _validate_address,
    3: _validate_host_info,
    4: _validate_images,
}


def validate_step(form: HostRegistration, step: int) -> dict[str, str]:
    """Validate one step of the form.

    Args:
        form: The registration form
        step: Step number, 1 (personal) to 4 (verification images)

    Returns:
        Mapping of field name to error message; empty when the step is valid
    """
    if step not in _VALIDATORS:
        raise ValueError(f"step must be one of {STEPS}, got {step}")
    return _VALIDATORS[step](form)


def validate(form: HostRegistration) -> dict[str, str]:
    """Validate every step and merge the errors."""
    errors = {}
    for step in STEPS:
        errors.update(validate_step(form, step))
    return errors


def build_multipart(form: HostRegistration) -> tuple[dict, list]:
    """Build httpx `data` and `files` for the signup upload."""
    data = {
        "firstName": form.first_name,
        "lastName": form.last_name,
        "email": form.email,
        "phone": form.phone,
        "password": form.password,
        "passwordConfirm": form.password_confirm,
        "role": form.role,
        "address": json.dumps(form.address.to_dict()),
        "businessName": form.business_name,
        "taxPIN": form.tax_pin,
        "hostDescription": form.host_description,
        "socialMedia": json.dumps(form.social_media),
        "website": form.website,
        "isMainIdFront": str(form.main_id_front),
        "isMainIdBack": str(form.main_id_back),
        "isMainSelfie": str(form.main_selfie),
    }
    files = [
        (wire_name, (image.filename, image.content, image.content_type))
        for attr, (_, wire_name, _) in IMAGE_FIELDS.items()
        for image in getattr(form, attr)
    ]
    return data, files


async def register_host(session: Session, form: HostRegistration) -> dict | None:
    """Validate the whole form and submit it in one multipart request."""
    errors = validate(form)
    if errors:
        raise ValidationError(errors)
    data, files = build_multipart(form)
    logger.info(f"Submitting host registration for {form.email} with {len(files)} images")
    return await session.signup(data, files=files)
