import unittest

from plots_erp import create_app
from plots_erp.extensions import db
from plots_erp.models import Settings, User
from plots_erp.constants import UserRole
from plots_erp.errors import PermissionDeniedError
from plots_erp.validation import ValidationError
from plots_erp.services import settings_service


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "DEFAULT_HOLD_HOURS": 36,
            "DEFAULT_TOKEN_AMOUNT_CENTS": 2_500_000,
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(Settings).delete()
        db.session.query(User).delete()
        db.session.commit()

        self.admin = User(name="Admin", email="admin@plots.test", role=UserRole.ADMIN)
        self.sales = User(name="Sales", email="sales@plots.test", role=UserRole.SALES)
        db.session.add_all([self.admin, self.sales])
        db.session.commit()

    def test_first_read_seeds_from_config(self):
        settings = settings_service.get_settings()
        self.assertEqual(settings.id, 1)
        self.assertEqual(settings.default_hold_hours, 36)
        self.assertEqual(settings.default_token_amount_cents, 2_500_000)
        self.assertTrue(settings.auto_expire_hold)
        self.assertEqual(db.session.query(Settings).count(), 1)

        settings_service.get_settings()
        self.assertEqual(db.session.query(Settings).count(), 1)

    def test_update_persists_and_records_actor(self):
        settings_service.update_settings(self.admin, {
            "default_hold_hours": 72,
            "auto_expire_hold": False,
            "discount_approval_thresholds": {"sales": 3, "pm": 8.5},
        })

        db.session.expire_all()
        settings = db.session.get(Settings, 1)
        self.assertEqual(settings.default_hold_hours, 72)
        self.assertFalse(settings.auto_expire_hold)
        self.assertEqual(settings.discount_approval_thresholds, {"sales": 3, "pm": 8.5})
        self.assertEqual(settings.updated_by_user_id, self.admin.id)

    def test_update_requires_settings_capability(self):
        with self.assertRaises(PermissionDeniedError):
            settings_service.update_settings(self.sales, {"default_hold_hours": 1})
        self.assertEqual(settings_service.get_settings().default_hold_hours, 36)

    def test_rejects_invalid_values(self):
        bad_updates = [
            {},
            {"default_hold_hours": 0},
            {"default_hold_hours": "48"},
            {"default_hold_hours": True},
            {"auto_expire_hold": "yes"},
            {"default_token_amount_cents": -1},
            {"discount_approval_thresholds": {"sales": 150}},
            {"discount_approval_thresholds": {"intern": 5}},
            {"discount_approval_thresholds": [5, 10]},
            {"hold_hours": 12},
        ]
        for changes in bad_updates:
            with self.subTest(changes=changes):
                with self.assertRaises(ValidationError):
                    settings_service.update_settings(self.admin, changes)

        self.assertEqual(settings_service.get_settings().default_hold_hours, 36)

    def test_secrets_are_masked_by_default(self):
        settings_service.update_settings(self.admin, {
            "whatsapp_api_key": "wa-secret",
            "email_smtp": {"host": "smtp.example.com", "password": "pw"},
        })
        settings = settings_service.get_settings()

        masked = settings.to_dict()
        self.assertEqual(masked["whatsapp_api_key"], "***")
        self.assertEqual(masked["email_smtp"], "***")
        self.assertIsNone(masked["maps_api_key"])

        raw = settings.to_dict(include_sensitive=True)
        self.assertEqual(raw["whatsapp_api_key"], "wa-secret")
        self.assertEqual(raw["email_smtp"]["host"], "smtp.example.com")


if __name__ == "__main__":
    unittest.main()
