"""Tests for the deterministic intent matcher and its extractors."""

import pytest

from medrelay.intent import extractors as ex
from medrelay.intent.matcher import FEATURE_COMMANDS, UNKNOWN_MESSAGE, DeterministicMatcher
from medrelay.prompts.prompt_templates import HELP_MESSAGE
from medrelay.schemas.intent_schema import Intent, IntentSource


class TestNumericShortcuts:
    def setup_method(self):
        self.matcher = DeterministicMatcher()

    @pytest.mark.parametrize("command,intent", sorted(FEATURE_COMMANDS.items()))
    def test_menu_numbers(self, command, intent):
        result = self.matcher.match(command)
        assert result.intent == intent
        assert result.source == IntentSource.NUMERIC
        assert result.confidence == 1.0

    def test_numbers_outside_menu(self):
        assert self.matcher.match_numeric("9") is None
        assert self.matcher.match("9").intent == Intent.UNKNOWN

    def test_numeric_tolerates_whitespace(self):
        assert self.matcher.match_numeric(" 3 ").intent == Intent.TRACK_ORDER

    def test_long_numbers_are_not_shortcuts(self):
        assert self.matcher.match_numeric("10001") is None


class TestPhrases:
    def setup_method(self):
        self.matcher = DeterministicMatcher()

    def test_help_carries_menu(self):
        result = self.matcher.match("Help")
        assert result.intent == Intent.HELP
        assert result.source == IntentSource.PHRASE
        assert result.fulfillment_text == HELP_MESSAGE

    @pytest.mark.parametrize("text", ["hi", "Hello!", "good morning", "START"])
    def test_greetings(self, text):
        assert self.matcher.match(text).intent == Intent.GREETING

    @pytest.mark.parametrize("text", ["logout", "Log out", "bye"])
    def test_logout(self, text):
        assert self.matcher.match(text).intent == Intent.LOGOUT

    def test_greeting_with_trailing_words_is_not_a_phrase(self):
        assert self.matcher.match("hi there").intent != Intent.GREETING


class TestAccountRules:
    def setup_method(self):
        self.matcher = DeterministicMatcher()

    def test_register_extracts_credentials(self):
        result = self.matcher.match("register Ada Obi ada@example.com secret1")
        assert result.intent == Intent.REGISTER
        assert result.source == IntentSource.PATTERN
        assert result.parameters == {"name": "Ada Obi", "email": "ada@example.com", "password": "secret1"}

    def test_sign_up_alias(self):
        assert self.matcher.match("sign up Ada ada@example.com secret1").intent == Intent.REGISTER

    def test_register_name_only(self):
        result = self.matcher.match("register Ada Obi")
        assert result.parameters == {"name": "Ada Obi"}

    def test_login_extracts_credentials(self):
        result = self.matcher.match("login ada@example.com secret1")
        assert result.intent == Intent.LOGIN
        assert result.parameters == {"email": "ada@example.com", "password": "secret1"}

    def test_credentials_never_become_product_search(self):
        result = self.matcher.match("login show@example.com find123")
        assert result.intent == Intent.LOGIN

    def test_password_reset(self):
        result = self.matcher.match("forgot password ada@example.com")
        assert result.intent == Intent.PASSWORD_RESET
        assert result.parameters == {"email": "ada@example.com"}


class TestCommerceRules:
    def setup_method(self):
        self.matcher = DeterministicMatcher()

    def test_generic_search_is_product_search(self):
        result = self.matcher.match("find paracetamol")
        assert result.intent == Intent.PRODUCT_SEARCH
        assert result.parameters == {"product": "paracetamol"}

    def test_product_words_are_stripped(self):
        result = self.matcher.match("search for medicine ibuprofen")
        assert result.parameters == {"product": "ibuprofen"}

    def test_whitespace_is_collapsed(self):
        assert self.matcher.match("  find   paracetamol ").parameters == {"product": "paracetamol"}

    def test_add_to_cart(self):
        result = self.matcher.match("add 1 2")
        assert result.intent == Intent.ADD_TO_CART
        assert result.parameters == {"productIndex": "1", "quantity": "2"}

    def test_add_to_cart_default_quantity(self):
        assert self.matcher.match("add 3").parameters == {"productIndex": "3", "quantity": "1"}

    def test_place_order(self):
        result = self.matcher.match("order 12 Allen Avenue, Ikeja pay with Paystack")
        assert result.intent == Intent.PLACE_ORDER
        assert result.parameters == {"paymentMethod": "Paystack", "address": "12 Allen Avenue, Ikeja"}

    def test_place_order_cash(self):
        result = self.matcher.match("checkout to 4 Marina Road cash on delivery")
        assert result.parameters == {"paymentMethod": "Cash on Delivery", "address": "4 Marina Road"}

    def test_track_order(self):
        result = self.matcher.match("track 10001")
        assert result.intent == Intent.TRACK_ORDER
        assert result.parameters == {"orderId": "10001"}

    def test_where_is_my_order(self):
        assert self.matcher.match("where is my order 10001").intent == Intent.TRACK_ORDER

    def test_payment(self):
        result = self.matcher.match("pay 10001 flutterwave")
        assert result.intent == Intent.PAYMENT
        assert result.parameters == {"orderId": "10001", "provider": "Flutterwave"}

    def test_healthcare_products(self):
        result = self.matcher.match("browse thermometer")
        assert result.intent == Intent.HEALTHCARE_PRODUCTS
        assert result.parameters == {"category": "thermometer"}

    def test_prescription_upload(self):
        assert self.matcher.match("upload prescription").intent == Intent.PRESCRIPTION_UPLOAD


class TestMedicalRules:
    def setup_method(self):
        self.matcher = DeterministicMatcher()

    def test_doctor_search_is_not_product_search(self):
        result = self.matcher.match("find a cardiologist in abuja")
        assert result.intent == Intent.SEARCH_DOCTORS
        assert result.parameters == {"specialty": "cardiologist", "location": "Abuja"}

    def test_book_appointment(self):
        result = self.matcher.match("book 1 2030-06-15 14:00")
        assert result.intent == Intent.BOOK_APPOINTMENT
        assert result.parameters == {"date": "2030-06-15", "time": "14:00", "doctorIndex": "1"}

    def test_book_consultation(self):
        assert self.matcher.match("schedule a consultation").intent == Intent.BOOK_APPOINTMENT

    def test_blood_test(self):
        result = self.matcher.match("blood test")
        assert result.intent == Intent.DIAGNOSTIC_TESTS
        assert result.parameters == {"testType": "blood test"}

    def test_book_a_test_is_diagnostic(self):
        result = self.matcher.match("book a malaria test")
        assert result.intent == Intent.DIAGNOSTIC_TESTS
        assert result.parameters == {"testType": "malaria test"}

    def test_find_a_test_is_not_product_search(self):
        assert self.matcher.match("find a lab test").intent != Intent.PRODUCT_SEARCH


class TestSupportRules:
    def setup_method(self):
        self.matcher = DeterministicMatcher()

    def test_connect_to_support(self):
        result = self.matcher.match("connect me to support")
        assert result.intent == Intent.SUPPORT
        assert result.parameters == {}

    def test_complaint_routes_to_orders(self):
        result = self.matcher.match("complaint about my delivery")
        assert result.intent == Intent.SUPPORT
        assert result.parameters == {"role": "orders"}

    def test_talk_to_routes_to_technical(self):
        assert self.matcher.match("talk to someone about a login error").parameters == {"role": "technical"}


class TestFallbacks:
    def setup_method(self):
        self.matcher = DeterministicMatcher()

    def test_keyword_fallback(self):
        result = self.matcher.match("I need medicine")
        assert result.intent == Intent.PRODUCT_SEARCH
        assert result.source == IntentSource.KEYWORD
        assert result.confidence == 0.6
        assert result.parameters == {}

    def test_delivery_keyword_tracks(self):
        assert self.matcher.match("when will it arrive").intent == Intent.TRACK_ORDER

    def test_unknown(self):
        result = self.matcher.match("thanks")
        assert result.intent == Intent.UNKNOWN
        assert result.source == IntentSource.FALLBACK
        assert result.confidence == 0.0
        assert result.fulfillment_text == UNKNOWN_MESSAGE

    def test_deterministic(self):
        first = self.matcher.match("find paracetamol")
        second = self.matcher.match("find paracetamol")
        assert first == second


class TestExtractors:
    def test_appointment_with_meridiem(self):
        params = ex.extract_appointment("book 2 2030-06-15 2:30 pm")
        assert params == {"date": "2030-06-15", "time": "2:30 pm", "doctorIndex": "2"}

    def test_order_without_payment(self):
        assert ex.extract_order("order to 7 Broad Street") == {"address": "7 Broad Street"}

    def test_payment_method_detection(self):
        assert ex.extract_payment_method("pay by cash") == "Cash on Delivery"
        assert ex.extract_payment_method("card") == ""

    def test_support_role_medical(self):
        assert ex.extract_support_role("help me with my prescription") == {"role": "medical"}

    def test_missing_values_are_absent(self):
        assert ex.extract_order_id("track my order") == {}
        assert ex.extract_cart_item("add it") == {}
