from __future__ import annotations

from registry.services.companies import CompanyProfile, CompanyRegistry


def test_known_company_uses_its_own_wording() -> None:
    registry = CompanyRegistry()

    form = registry.get_form_config("atos")

    assert registry.get_display_name("atos") == "ATOS"
    assert form.submit_text == "Submit"
    assert form.fields["loss"].label == "Perte Totale"
    assert form.fields["name"].required is True
    assert form.success_message.startswith("Vos données ont été comptabilisées")


def test_unknown_company_gets_generic_profile() -> None:
    registry = CompanyRegistry()

    form = registry.get_form_config("Acme")

    assert registry.get_display_name("acme") == "ACME"
    assert form.company == "acme"
    assert form.title == "ACME Shareholder Registration"
    assert form.submit_text == "Submit Registration"
    assert registry.get_success_message("acme").startswith("Your ACME data has been successfully recorded!")
    assert set(form.fields) == {
        "name",
        "email",
        "phone",
        "share_count",
        "purchase_price",
        "sell_price",
        "loss",
        "remarks",
    }


def test_email_subject_carries_brand_and_display_name() -> None:
    registry = CompanyRegistry(brand_name="UPRA")

    assert registry.get_email_subject("urpea") == "UPRA Registration - URPEA"
    assert registry.get_email_subject("atos") == "UPRA Registration - ATOS"


def test_supported_companies_follow_configuration() -> None:
    assert CompanyRegistry().supported_companies() == ("atos", "urpea")
    assert CompanyRegistry(supported=["urpea"]).supported_companies() == ("urpea",)


def test_custom_profiles_replace_defaults() -> None:
    registry = CompanyRegistry({"globex": CompanyProfile(company_id="globex", display_name="Globex Corp")})

    assert registry.get_display_name("GLOBEX") == "Globex Corp"
    assert registry.get_display_name("atos") == "ATOS"
    assert registry.get_form_config("atos").submit_text == "Submit Registration"
