import unittest
from datetime import date
from decimal import Decimal

from gestion.errors import ValidationError
from gestion.services import expense_ledger
from gestion.services.expense_ledger import ExpenseEntry


class ExpenseLedgerTests(unittest.TestCase):
    def test_add_expense_appends_normalized_entry(self):
        entries = []
        entry = expense_ledger.add_expense(entries, {"description": "  Materiales ", "amount": "40000"})

        self.assertEqual(entries, [entry])
        self.assertEqual(entry.description, "Materiales")
        self.assertEqual(entry.amount, Decimal("40000.00"))
        self.assertEqual(entry.category, "other")
        self.assertEqual(entry.document_type, "boleta")
        self.assertEqual(entry.payment_method, "efectivo")

    def test_add_expense_rejects_non_positive_amount(self):
        entries = []
        for amount in (0, "-1", Decimal("-0.01")):
            with self.assertRaises(ValidationError):
                expense_ledger.add_expense(entries, {"description": "Fletes", "amount": amount})
        self.assertEqual(entries, [])

    def test_add_expense_rejects_empty_description(self):
        entries = [ExpenseEntry(description="Existing", amount=Decimal("10.00"))]
        for description in ("", "   ", None):
            with self.assertRaises(ValidationError):
                expense_ledger.add_expense(entries, {"description": description, "amount": 100})
        self.assertEqual(len(entries), 1)

    def test_add_expense_rejects_non_numeric_amount(self):
        with self.assertRaises(ValidationError):
            expense_ledger.add_expense([], {"description": "Fletes", "amount": "diez"})

    def test_unknown_document_type_rejected(self):
        with self.assertRaises(ValidationError):
            expense_ledger.normalize_expense({"description": "Fletes", "amount": 10, "document_type": "recibo"})

    def test_expense_date_is_parsed(self):
        entry = expense_ledger.normalize_expense(
            {"description": "Fletes", "amount": 10, "expense_date": "2025-04-03", "document_type": "FACTURA"}
        )
        self.assertEqual(entry.expense_date, date(2025, 4, 3))
        self.assertEqual(entry.document_type, "factura")

    def test_bad_expense_date_rejected(self):
        with self.assertRaises(ValidationError):
            expense_ledger.normalize_expense({"description": "Fletes", "amount": 10, "expense_date": "03/04/2025"})

    def test_total_of_empty_is_zero(self):
        self.assertEqual(expense_ledger.total_of([]), Decimal("0.00"))

    def test_total_of_mixed_entries(self):
        entries = [
            ExpenseEntry(description="Materiales", amount=Decimal("40000")),
            {"description": "Fletes", "amount": "10000.50"},
        ]
        self.assertEqual(expense_ledger.total_of(entries), Decimal("50000.50"))

    def test_validate_requires_at_least_one_expense(self):
        with self.assertRaises(ValidationError) as ctx:
            expense_ledger.validate([])
        self.assertEqual(ctx.exception.message, "at least one valid expense required")

        with self.assertRaises(ValidationError):
            expense_ledger.validate(None)

    def test_validate_reports_the_invalid_entry(self):
        with self.assertRaises(ValidationError) as ctx:
            expense_ledger.validate([
                {"description": "Materiales", "amount": 40000},
                {"description": "Fletes", "amount": 0},
            ])
        self.assertTrue(ctx.exception.message.startswith("Expense #2"))
        self.assertEqual(ctx.exception.details["index"], 1)

    def test_validate_returns_normalized_entries(self):
        entries = expense_ledger.validate([{"description": "Materiales", "amount": 40000, "category": "supplies"}])
        self.assertEqual(len(entries), 1)
        self.assertIsInstance(entries[0], ExpenseEntry)
        self.assertEqual(entries[0].category, "supplies")


if __name__ == "__main__":
    unittest.main()
