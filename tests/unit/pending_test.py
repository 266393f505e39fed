from concurrent.futures import Future
from unittest import TestCase

from sturdy.pending import PendingRequests


class TestPendingRequests(TestCase):
    def setUp(self):
        self.__sut = PendingRequests()

    def test_register_and_resolve(self):
        handle = Future()

        self.__sut.register('GET:https://api.example.com/users/1', handle)

        self.assertTrue(self.__sut.has('GET:https://api.example.com/users/1'))
        self.assertIs(handle, self.__sut.get('GET:https://api.example.com/users/1'))
        self.assertEqual(1, len(self.__sut))

        self.__sut.resolve('GET:https://api.example.com/users/1')

        self.assertFalse(self.__sut.has('GET:https://api.example.com/users/1'))
        self.assertIsNone(self.__sut.get('GET:https://api.example.com/users/1'))
        self.assertEqual(0, len(self.__sut))

    def test_register_twice_is_refused(self):
        self.__sut.register('key', Future())

        with self.assertRaises(KeyError):
            self.__sut.register('key', Future())

    def test_resolve_unknown_key(self):
        self.__sut.resolve('key')

        self.assertFalse(self.__sut.has('key'))
