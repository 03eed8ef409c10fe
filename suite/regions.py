"""
Region registry: domain, locale, currency and localized UI strings per storefront.

Pure lookup tables. Page objects use the translations to build text-based
locators and the error messages to assert localized validation output.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Translations:
    greeting: str
    sign_in: str
    sign_out: str
    sign_up: str
    register: str
    login: str
    account: str
    forgot_password: str
    return_to_sign_in: str


@dataclass(frozen=True)
class ErrorMessages:
    invalid_credentials: str
    invalid_email: str
    required_field: str
    existing_account: str
    enter_password: str
    enter_email_address: str
    no_account_found: str


@dataclass(frozen=True)
class RegionConfig:
    code: str
    name: str
    domain: str
    locale: str
    currency: str
    site_code: int
    translations: Translations
    error_messages: ErrorMessages


_ENGLISH_TRANSLATIONS = Translations(
    greeting="Hi",
    sign_in="Sign in",
    sign_out="Sign out",
    sign_up="Sign Up",
    register="Register",
    login="Login",
    account="Account",
    forgot_password="Forgot Password",
    return_to_sign_in="Return to Sign In",
)

_ENGLISH_ERRORS = ErrorMessages(
    invalid_credentials="Username or password incorrect",
    invalid_email="Please enter a valid email address.",
    required_field="This is required field.",
    existing_account="An account with this email already exists",
    enter_password="Enter your password",
    enter_email_address="Enter your email address",
    no_account_found="There is no account associated with this email address",
)

REGIONS: dict[str, RegionConfig] = {
    "US": RegionConfig(
        code="US",
        name="United States",
        domain="printerpix.com",
        locale="en-US",
        currency="USD",
        site_code=6,
        translations=_ENGLISH_TRANSLATIONS,
        error_messages=_ENGLISH_ERRORS,
    ),
    "GB": RegionConfig(
        code="GB",
        name="United Kingdom",
        domain="printerpix.co.uk",
        locale="en-GB",
        currency="GBP",
        site_code=4,
        translations=_ENGLISH_TRANSLATIONS,
        error_messages=_ENGLISH_ERRORS,
    ),
    "DE": RegionConfig(
        code="DE",
        name="Germany",
        domain="printerpix.de",
        locale="de-DE",
        currency="EUR",
        site_code=16,
        translations=Translations(
            greeting="Hallo",
            sign_in="Mein Konto",
            sign_out="Abmelden",
            sign_up="Anmelden",
            register="Anmelden",
            login="Mein Konto",
            account="Konto",
            forgot_password="Passwort vergessen",
            return_to_sign_in="Zur Anmeldung zurückkehren",
        ),
        error_messages=ErrorMessages(
            invalid_credentials="Benutzername oder Passwort ist falsch",
            invalid_email="Ungültige E-Mail",
            required_field="Dieses Feld ist erforderlich.",
            existing_account=(
                "Obwohl Sie angegeben haben, ein neuer Kunde zu sein, "
                "wurde Ihre E-Mail-Adresse bereits verwendet."
            ),
            enter_password="Geben Sie Ihr Passwort ein",
            enter_email_address="E-Mail eingeben",
            no_account_found="Es ist kein Konto mit dieser E-Mail-Adresse verknüpft",
        ),
    ),
    "FR": RegionConfig(
        code="FR",
        name="France",
        domain="printerpix.fr",
        locale="fr-FR",
        currency="EUR",
        site_code=10,
        translations=Translations(
            greeting="Salut",
            sign_in="Se connecter",
            sign_out="Déconnectez",
            sign_up="S'inscrire",
            register="S'inscrire",
            login="Se connecter",
            account="Mon compte",
            forgot_password="Mot de passe oublié",
            return_to_sign_in="Retour à la connexion",
        ),
        error_messages=ErrorMessages(
            invalid_credentials="Nom d'utilisateur ou mot de passe incorrect",
            invalid_email="S'il vous plaît, mettez une adresse email valide.",
            required_field="C'est un champ obligatoire.",
            existing_account=(
                "Bien que vous ayez indiqué que vous êtes un nouveau client, "
                "votre adresse email a déjà été utilisée."
            ),
            enter_password="Ce champ est obligatoire",
            enter_email_address="Entrez votre adresse email",
            no_account_found="Il n'y a pas de compte associé à cette adresse e-mail",
        ),
    ),
    "IT": RegionConfig(
        code="IT",
        name="Italy",
        domain="printerpix.it",
        locale="it-IT",
        currency="EUR",
        site_code=13,
        translations=Translations(
            greeting="Ciao",
            sign_in="Accedi",
            sign_out="Esci",
            sign_up="Registrati",
            register="Registrati",
            login="Accedi",
            account="Il mio account",
            forgot_password="Password dimenticata",
            return_to_sign_in="Torna al login",
        ),
        error_messages=ErrorMessages(
            invalid_credentials="Nome utente o password errati",
            invalid_email="Inserisci un indirizzo email valido.",
            required_field="Questo campo è obbligatorio.",
            existing_account="Esiste già un account con questa email",
            enter_password="Inserisci la tua Password",
            enter_email_address="Inserisci il tuo indirizzo email",
            no_account_found="Non esiste un account associato a questo indirizzo email",
        ),
    ),
    "ES": RegionConfig(
        code="ES",
        name="Spain",
        domain="printerpix.es",
        locale="es-ES",
        currency="EUR",
        site_code=12,
        translations=Translations(
            greeting="Hola",
            sign_in="Iniciar Sesión",
            sign_out="Cerrar",
            sign_up="Registrarse",
            register="Registrarse",
            login="Iniciar Sesión",
            account="Mi cuenta",
            forgot_password="Olvidé mi contraseña",
            return_to_sign_in="Volver al inicio de sesión",
        ),
        error_messages=ErrorMessages(
            invalid_credentials="Usuario o contraseña incorrectos",
            invalid_email="Por favor, ingresa una dirección de correo electrónico válida.",
            required_field="Este campo es obligatorio.",
            existing_account="Ya existe una cuenta con este correo electrónico",
            enter_password="Ingresa tu contraseña",
            enter_email_address="Ingresa tu dirección de correo electrónico",
            no_account_found="No hay ninguna cuenta asociada con esta dirección de correo electrónico",
        ),
    ),
    "NL": RegionConfig(
        code="NL",
        name="Netherlands",
        domain="printerpix.nl",
        locale="nl-NL",
        currency="EUR",
        site_code=14,
        translations=Translations(
            greeting="Hi",
            sign_in="Inloggen",
            sign_out="Uitloggen",
            sign_up="Registreren",
            register="Registreren",
            login="Inloggen",
            account="Mijn account",
            forgot_password="Wachtwoord vergeten",
            return_to_sign_in="Terug naar inloggen",
        ),
        error_messages=ErrorMessages(
            invalid_credentials="Gebruikersnaam of wachtwoord onjuist",
            invalid_email="Voer een geldig e-mailadres in.",
            required_field="Dit is een verplicht veld.",
            existing_account="Er bestaat al een account met dit e-mailadres",
            enter_password="Vul je wachtwoord in",
            enter_email_address="Voer je e-mailadres in",
            no_account_found="Er is geen account gekoppeld aan dit e-mailadres",
        ),
    ),
}


def get_region(code: str) -> RegionConfig:
    """Look up a region by code (case-insensitive). Raises ValueError for unknown codes."""
    region = REGIONS.get(code.upper())
    if region is None:
        raise ValueError(
            f"Unknown region code: {code}. Available regions: {', '.join(REGIONS)}"
        )
    return region


def get_all_region_codes() -> list[str]:
    return list(REGIONS)


def is_valid_region(code: str) -> bool:
    return code.upper() in REGIONS
