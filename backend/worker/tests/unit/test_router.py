from worker.jobs import Phase
from worker.reconcile import CleanupResult
from worker.router import PhaseRouter
from worker.tests.mocks import make_job


class _RecordingReconciler:
    def __init__(self, name: str, calls: list[str]) -> None:
        self._name = name
        self._calls = calls

    async def reconcile(self, job):
        self._calls.append(self._name)
        return CleanupResult(reconciler=self._name)


def _router(*, lobby_fallback: bool = True) -> tuple[PhaseRouter, list[str]]:
    calls: list[str] = []
    router = PhaseRouter(
        _RecordingReconciler("lobby", calls),
        _RecordingReconciler("live", calls),
        lobby_fallback=lobby_fallback,
    )
    return router, calls


class TestPhaseRouter:
    async def test_lobby_job_runs_lobby_only(self):
        router, calls = _router()

        results = await router.dispatch(make_job(phase=Phase.LOBBY))

        assert calls == ["lobby"]
        assert [r.reconciler for r in results] == ["lobby"]

    async def test_live_game_job_runs_lobby_fallback_after(self):
        router, calls = _router()

        await router.dispatch(make_job(phase=Phase.LIVE_GAME))

        assert calls == ["live", "lobby"]

    async def test_live_game_job_without_fallback(self):
        router, calls = _router(lobby_fallback=False)

        await router.dispatch(make_job(phase=Phase.LIVE_GAME))

        assert calls == ["live"]

    async def test_unknown_phase_is_dropped(self):
        router, calls = _router()

        results = await router.dispatch(make_job(phase="spectating"))

        assert results == []
        assert calls == []


class TestLiveGameFallbackWithRealReconcilers:
    async def test_frees_lobby_cards_and_resets_once(self, harness):
        await harness.seed_game(players=("A",), cards={7: "A"}, active=True)

        results = await harness.router.dispatch(make_job("A", phase=Phase.LIVE_GAME))

        live, lobby = results
        assert live.round_ended is True
        assert lobby.round_ended is False
        assert lobby.released_card_ids == [7]
        assert await harness.card_map() == {}
        assert len(harness.events("fullGameReset")) == 1
        assert len(harness.events("cardsReleased")) == 1
