from ddt import ddt, data, unpack
from unittest import TestCase

from sturdy.cache import MemoryCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, milliseconds: float) -> None:
        self.now += milliseconds / 1000.0


@ddt
class TestMemoryCache(TestCase):
    def setUp(self):
        self.__clock = FakeClock()
        self.__sut = MemoryCache(clock=self.__clock)

    def test_get_missing(self):
        self.assertIsNone(self.__sut.get('GET:https://api.example.com/users/1'))

    def test_set_then_get(self):
        self.__sut.set('key', {'id': 1}, 5000)

        self.assertEqual({'id': 1}, self.__sut.get('key'))

    def test_stored_value_is_not_aliased(self):
        value = {'id': 1, 'tags': ['a']}
        self.__sut.set('key', value, 5000)

        value['tags'].append('b')
        self.__sut.get('key')['id'] = 2

        self.assertEqual({'id': 1, 'tags': ['a']}, self.__sut.get('key'))

    @data(
        # Still fresh right up to the expiry instant.
        (0, True),
        (4999, True),
        (5000, True),
        # Stale once the clock passes the expiry.
        (5001, False),
        (60000, False),
    )
    @unpack
    def test_expiry(self, elapsed, expected_hit):
        self.__sut.set('key', 'value', 5000)
        self.__clock.advance(elapsed)

        if expected_hit:
            self.assertEqual('value', self.__sut.get('key'))
        else:
            self.assertIsNone(self.__sut.get('key'))

    def test_expired_entry_is_evicted_on_read(self):
        self.__sut.set('key', 'value', 100)
        self.__clock.advance(200)

        self.assertEqual(1, len(self.__sut), 'Expiry must not be noticed until the entry is read')
        self.__sut.get('key')
        self.assertEqual(0, len(self.__sut))

    def test_set_overwrites(self):
        self.__sut.set('key', 'first', 100)
        self.__sut.set('key', 'second', 10000)
        self.__clock.advance(500)

        self.assertEqual('second', self.__sut.get('key'), 'The last write should win, including its TTL')

    def test_delete(self):
        self.__sut.set('key', 'value', 1000)

        self.assertTrue(self.__sut.delete('key'))
        self.assertIsNone(self.__sut.get('key'))
        self.assertFalse(self.__sut.delete('key'), 'Deleting a missing key should report that nothing was deleted')

    def test_clear(self):
        self.__sut.set('a', 1, 1000)
        self.__sut.set('b', 2, 1000)

        self.__sut.clear()

        self.assertIsNone(self.__sut.get('a'))
        self.assertIsNone(self.__sut.get('b'))
        self.assertEqual(0, len(self.__sut))
