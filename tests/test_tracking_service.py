import threading
import unittest

from crypto_exchange.services.quote_store import QuoteStore
from crypto_exchange.services.tracking import CryptoTrackingService
from tests.helpers import StubFetcher, make_quote


class SucceedOnceFetcher(StubFetcher):
    def fetch_one(self, symbol: str):
        self.fetch_one_calls.append(symbol)
        if len(self.fetch_one_calls) == 1:
            return self.quotes.get(symbol.upper())
        return None


class TimeoutFetcher(StubFetcher):
    def fetch_one(self, symbol: str):
        self.fetch_one_calls.append(symbol)
        raise TimeoutError(f"timeout:{symbol}")

    def fetch_many(self, symbols):
        self.fetch_many_calls.append(list(symbols))
        raise TimeoutError("timeout:batch")


class CryptoTrackingServiceTest(unittest.TestCase):
    def _service(self, fetcher):
        store = QuoteStore()
        return CryptoTrackingService(quote_store=store, fetcher=fetcher), store

    def test_add_fetches_and_tracks_new_symbol(self):
        btc = make_quote("BTC", price=50000.0)
        service, store = self._service(StubFetcher({"BTC": btc}))

        added = service.add("btc")

        self.assertEqual(added, btc)
        self.assertEqual(service.get("BTC"), btc)
        self.assertEqual(service.count(), 1)
        self.assertEqual(store.symbols(), ["BTC"])

    def test_add_is_idempotent_for_tracked_symbol(self):
        fetcher = SucceedOnceFetcher({"BTC": make_quote("BTC", price=50000.0)})
        service, _ = self._service(fetcher)

        first = service.add("BTC")
        second = service.add("btc")

        self.assertEqual(second, first)
        self.assertEqual(fetcher.fetch_one_calls, ["BTC"])

    def test_add_failure_leaves_store_unchanged(self):
        service, store = self._service(StubFetcher({}))

        self.assertIsNone(service.add("NOPE"))
        self.assertEqual(store.count(), 0)

    def test_add_unconfigured_makes_no_fetch(self):
        fetcher = StubFetcher({"BTC": make_quote("BTC")}, configured=False)
        service, store = self._service(fetcher)

        self.assertFalse(service.is_api_configured())
        self.assertIsNone(service.add("btc"))
        self.assertEqual(fetcher.fetch_one_calls, [])
        self.assertEqual(store.count(), 0)

    def test_add_blank_symbol_never_reaches_fetcher(self):
        fetcher = StubFetcher({})
        service, _ = self._service(fetcher)

        self.assertIsNone(service.add("  "))
        self.assertEqual(fetcher.fetch_one_calls, [])

    def test_fetcher_timeout_is_a_plain_failure(self):
        fetcher = TimeoutFetcher({})
        service, store = self._service(fetcher)
        store.upsert(make_quote("BTC", price=1.0))

        self.assertIsNone(service.add("ETH"))
        self.assertIsNone(service.refresh_one("BTC"))
        result = service.refresh_all()

        self.assertEqual((result.updated, result.attempted), (0, 1))
        self.assertEqual(store.get("BTC").price, 1.0)

    def test_remove(self):
        service, store = self._service(StubFetcher({}))
        store.upsert(make_quote("DOGE"))

        self.assertTrue(service.remove("doge"))
        self.assertFalse(service.remove("doge"))
        self.assertIsNone(service.get("DOGE"))

    def test_refresh_one_replaces_tracked_record(self):
        fetcher = StubFetcher({"BTC": make_quote("BTC", price=51000.0)})
        service, store = self._service(fetcher)
        store.upsert(make_quote("BTC", price=50000.0))

        refreshed = service.refresh_one("BTC")

        self.assertEqual(refreshed.price, 51000.0)
        self.assertEqual(service.get("BTC").price, 51000.0)

    def test_refresh_one_failure_keeps_previous_record(self):
        service, store = self._service(StubFetcher({}))
        original = store.upsert(make_quote("BTC", price=50000.0))

        self.assertIsNone(service.refresh_one("BTC"))
        self.assertEqual(store.get("BTC"), original)

    def test_refresh_one_tracks_previously_untracked_symbol(self):
        # refresh does not check tracking state; a successful fetch starts tracking
        service, store = self._service(StubFetcher({"ADA": make_quote("ADA", price=0.5)}))

        self.assertIsNotNone(service.refresh_one("ada"))
        self.assertTrue(store.exists("ADA"))

    def test_refresh_all_with_empty_store_makes_no_fetch(self):
        fetcher = StubFetcher({})
        service, _ = self._service(fetcher)

        result = service.refresh_all()

        self.assertEqual((result.updated, result.attempted, result.skipped), (0, 0, False))
        self.assertEqual(fetcher.fetch_many_calls, [])

    def test_refresh_all_partial_coverage_keeps_stale_records(self):
        fetcher = StubFetcher(
            {
                "BTC": make_quote("BTC", price=51000.0),
                "ETH": make_quote("ETH", price=3100.0),
            }
        )
        service, store = self._service(fetcher)
        store.upsert(make_quote("BTC", price=50000.0))
        store.upsert(make_quote("ETH", price=3000.0))
        sol = store.upsert(make_quote("SOL", price=100.0))

        result = service.refresh_all()

        self.assertEqual(result.updated, 2)
        self.assertEqual(result.attempted, 3)
        self.assertEqual(len(fetcher.fetch_many_calls), 1)
        self.assertEqual(sorted(fetcher.fetch_many_calls[0]), ["BTC", "ETH", "SOL"])
        self.assertEqual(store.get("BTC").price, 51000.0)
        self.assertEqual(store.get("ETH").price, 3100.0)
        self.assertIs(store.get("SOL"), sol)

    def test_refresh_all_unconfigured_makes_no_fetch(self):
        fetcher = StubFetcher({"BTC": make_quote("BTC", price=2.0)}, configured=False)
        service, store = self._service(fetcher)
        store.upsert(make_quote("BTC", price=1.0))

        result = service.refresh_all()

        self.assertEqual((result.updated, result.attempted), (0, 1))
        self.assertEqual(fetcher.fetch_many_calls, [])

    def test_non_blocking_refresh_all_skips_while_batch_in_flight(self):
        entered = threading.Event()
        release = threading.Event()

        class SlowFetcher(StubFetcher):
            def fetch_many(self, symbols):
                entered.set()
                release.wait(2.0)
                return super().fetch_many(symbols)

        fetcher = SlowFetcher({"BTC": make_quote("BTC", price=2.0)})
        service, store = self._service(fetcher)
        store.upsert(make_quote("BTC", price=1.0))

        results = []
        worker = threading.Thread(target=lambda: results.append(service.refresh_all()))
        worker.start()
        self.assertTrue(entered.wait(1.0))

        skipped = service.refresh_all(blocking=False)
        release.set()
        worker.join(2.0)

        self.assertTrue(skipped.skipped)
        self.assertEqual(len(fetcher.fetch_many_calls), 1)
        self.assertEqual(results[0].updated, 1)
        self.assertEqual(store.get("BTC").price, 2.0)


    def test_symbol_removed_during_in_flight_batch_stays_removed(self):
        entered = threading.Event()
        release = threading.Event()

        class SlowFetcher(StubFetcher):
            def fetch_many(self, symbols):
                entered.set()
                release.wait(2.0)
                return super().fetch_many(symbols)

        fetcher = SlowFetcher(
            {
                "BTC": make_quote("BTC", price=2.0),
                "SOL": make_quote("SOL", price=2.0),
            }
        )
        service, store = self._service(fetcher)
        store.upsert(make_quote("BTC", price=1.0))
        store.upsert(make_quote("SOL", price=1.0))

        results = []
        worker = threading.Thread(target=lambda: results.append(service.refresh_all()))
        worker.start()
        self.assertTrue(entered.wait(1.0))

        self.assertTrue(service.remove("SOL"))
        release.set()
        worker.join(2.0)

        self.assertFalse(store.exists("SOL"))
        self.assertEqual(store.get("BTC").price, 2.0)
        self.assertEqual((results[0].updated, results[0].attempted), (1, 2))

    def test_refresh_all_ignores_symbols_that_were_not_requested(self):
        class ExtraSymbolFetcher(StubFetcher):
            def fetch_many(self, symbols):
                self.fetch_many_calls.append(list(symbols))
                return {"BTC": make_quote("BTC", price=2.0), "XRP": make_quote("XRP", price=0.5)}

        service, store = self._service(ExtraSymbolFetcher({}))
        store.upsert(make_quote("BTC", price=1.0))

        result = service.refresh_all()

        self.assertEqual(store.symbols(), ["BTC"])
        self.assertEqual((result.updated, result.attempted), (1, 1))

    def test_seed_tracks_returned_symbols_in_one_batch(self):
        fetcher = StubFetcher({"BTC": make_quote("BTC"), "ETH": make_quote("ETH")})
        service, store = self._service(fetcher)

        seeded = service.seed(["btc", " eth ", "", "sol"])

        self.assertEqual(seeded, 2)
        self.assertEqual(fetcher.fetch_many_calls, [["BTC", "ETH", "SOL"]])
        self.assertEqual(sorted(store.symbols()), ["BTC", "ETH"])

    def test_seed_swallows_batch_errors(self):
        service, store = self._service(TimeoutFetcher({}))

        self.assertEqual(service.seed(["BTC"]), 0)
        self.assertEqual(store.count(), 0)


if __name__ == "__main__":
    unittest.main()
