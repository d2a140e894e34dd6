"""
Message Templates
=================
Localized SMS and email templates for verification codes.

Lookup order for a (purpose, locale) pair:
    1. locale + purpose
    2. locale generic
    3. default locale + purpose
    4. default locale generic
so a missing translation never blocks delivery.
"""

import html
from typing import Dict, Iterator, Optional

from verify_core.otp.models import Purpose

from .models import EmailMessage, SmsMessage

GENERIC = "generic"

SMS_TEMPLATES: Dict[str, Dict[str, str]] = {
    "en": {
        GENERIC: "Your {product} verification code is: {code}. This code expires in {minutes} minutes. Do not share this code with anyone.",
        Purpose.REGISTRATION.value: "Your {product} verification code is {code}. Valid for {minutes} minutes.",
        Purpose.LOGIN.value: "Your {product} login code is {code}. Do not share this code.",
        Purpose.PASSWORD_RESET.value: "Your {product} password reset code is {code}. Valid for {minutes} minutes.",
        Purpose.CONTACT_CHANGE.value: "Confirm your new contact details for {product} with code {code}.",
        Purpose.TWO_FACTOR.value: "Your {product} 2FA code is {code}.",
    },
    "es": {
        GENERIC: "Tu código de verificación de {product} es: {code}. Este código expira en {minutes} minutos. No compartas este código con nadie.",
        Purpose.REGISTRATION.value: "Tu código de verificación de {product} es {code}. Válido por {minutes} minutos.",
        Purpose.LOGIN.value: "Tu código de acceso de {product} es {code}. No compartas este código.",
        Purpose.PASSWORD_RESET.value: "Tu código de restablecimiento de {product} es {code}. Válido por {minutes} minutos.",
        Purpose.CONTACT_CHANGE.value: "Confirma tus nuevos datos de contacto en {product} con el código {code}.",
        Purpose.TWO_FACTOR.value: "Tu código 2FA de {product} es {code}.",
    },
    "fr": {
        GENERIC: "Votre code de vérification {product} est: {code}. Ce code expire dans {minutes} minutes. Ne partagez pas ce code.",
    },
    "pt": {
        GENERIC: "Seu código de verificação do {product} é: {code}. Este código expira em {minutes} minutos. Não compartilhe este código.",
    },
    "hi": {
        GENERIC: "आपका {product} सत्यापन कोड है: {code}. यह कोड {minutes} मिनट में समाप्त हो जाएगा। इस कोड को किसी के साथ साझा न करें।",
    },
    "bn": {
        GENERIC: "আপনার {product} যাচাইকরণ কোড: {code}। এই কোডটি {minutes} মিনিটে মেয়াদ শেষ হবে। এই কোডটি কারো সাথে শেয়ার করবেন না।",
    },
}

EMAIL_TEMPLATES: Dict[str, Dict[str, Dict[str, str]]] = {
    "en": {
        GENERIC: {
            "subject": "Verify Your Email - Code {code}",
            "html": (
                "<h2>Email Verification</h2>"
                "<p>Your {product} verification code is: <strong>{code}</strong></p>"
                "<p>This code will expire in {minutes} minutes.</p>"
                "<p>If you didn't request this, please ignore this email.</p>"
            ),
            "text": "Your {product} verification code is {code}. Valid for {minutes} minutes.",
        },
        Purpose.PASSWORD_RESET.value: {
            "subject": "Password Reset Code - {code}",
            "html": (
                "<h2>Password Reset</h2>"
                "<p>Your {product} password reset code is: <strong>{code}</strong></p>"
                "<p>This code will expire in {minutes} minutes.</p>"
                "<p>If you didn't request this, please contact support.</p>"
            ),
            "text": "Your {product} password reset code is {code}. Valid for {minutes} minutes.",
        },
    },
    "es": {
        GENERIC: {
            "subject": "Verifica tu correo - Código {code}",
            "html": (
                "<h2>Verificación de correo</h2>"
                "<p>Tu código de verificación de {product} es: <strong>{code}</strong></p>"
                "<p>Este código expira en {minutes} minutos.</p>"
                "<p>Si no solicitaste esto, ignora este correo.</p>"
            ),
            "text": "Tu código de verificación de {product} es {code}. Válido por {minutes} minutos.",
        },
    },
}


def locale_candidates(locale: Optional[str]) -> Iterator[str]:
    """Yield "pt-br" then "pt" for a locale like "pt_BR"."""
    if not locale:
        return
    normalized = locale.strip().lower().replace("_", "-")
    if normalized:
        yield normalized
        base = normalized.split("-", 1)[0]
        if base != normalized:
            yield base


class TemplateCatalog:
    """Resolves and renders templates with locale fallback."""

    def __init__(
        self,
        product_name: str,
        default_locale: str = "en",
        sms_templates: Optional[Dict[str, Dict[str, str]]] = None,
        email_templates: Optional[Dict[str, Dict[str, Dict[str, str]]]] = None,
    ):
        self.product_name = product_name
        self.default_locale = default_locale
        self.sms_templates = sms_templates or SMS_TEMPLATES
        self.email_templates = email_templates or EMAIL_TEMPLATES
        if default_locale not in self.sms_templates:
            raise ValueError(f"Default locale {default_locale!r} has no SMS templates")
        if default_locale not in self.email_templates:
            raise ValueError(f"Default locale {default_locale!r} has no email templates")

    def _resolve(self, table: Dict[str, Dict], purpose: Purpose, locale: Optional[str]):
        candidates = list(locale_candidates(locale)) + [self.default_locale]
        for candidate in candidates:
            templates = table.get(candidate)
            if not templates:
                continue
            for key in (purpose.value, GENERIC):
                if key in templates:
                    return templates[key]
        raise LookupError(f"No template for {purpose.value} in default locale")

    def render_sms(self, purpose: Purpose, code: str, minutes: int, locale: Optional[str] = None) -> SmsMessage:
        template = self._resolve(self.sms_templates, purpose, locale)
        return SmsMessage(
            body=template.format(product=self.product_name, code=code, minutes=minutes)
        )

    def render_email(
        self,
        purpose: Purpose,
        code: str,
        minutes: int,
        locale: Optional[str] = None,
    ) -> EmailMessage:
        template = self._resolve(self.email_templates, purpose, locale)
        values = {"product": self.product_name, "code": code, "minutes": minutes}
        escaped = {key: html.escape(str(value)) for key, value in values.items()}
        text = template.get("text")
        return EmailMessage(
            subject=template["subject"].format(**values),
            html=template["html"].format(**escaped),
            text=text.format(**values) if text else None,
        )
