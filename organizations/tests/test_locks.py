from django.test import SimpleTestCase

from organizations.exceptions import ReentrancyError
from organizations.locks import is_locked, non_reentrant


class NonReentrantTests(SimpleTestCase):
    def test_nested_entry_with_same_key_is_rejected(self):
        with non_reentrant('sale:org'):
            with self.assertRaises(ReentrancyError):
                with non_reentrant('sale:org'):
                    pass
            self.assertTrue(is_locked('sale:org'))
        self.assertFalse(is_locked('sale:org'))

    def test_different_keys_do_not_conflict(self):
        with non_reentrant('sale:a'):
            with non_reentrant('sale:b'):
                self.assertTrue(is_locked('sale:a'))
                self.assertTrue(is_locked('sale:b'))

    def test_released_when_body_raises(self):
        with self.assertRaises(ValueError):
            with non_reentrant('vote:org:1'):
                raise ValueError("boom")
        self.assertFalse(is_locked('vote:org:1'))
        with non_reentrant('vote:org:1'):
            pass
