"""Tests for sent-alert history and recipient pagination."""
import asyncio

import pytest

from alertwizard import AlertHistory, AlertTableItem, RecipientStatus, paginate


def _recipients(count):
    return [RecipientStatus(id=str(i), name=f"Aluno {i}", status="viewed" if i % 2 else "pending") for i in range(count)]


class TestPaginate:

    def test_first_page(self):
        page = paginate(list(range(25)))
        assert page.items == tuple(range(10))
        assert page.page == 1
        assert page.total_pages == 3

    def test_last_partial_page(self):
        assert paginate(list(range(25)), page=3).items == (20, 21, 22, 23, 24)

    def test_page_clamped(self):
        """Test that out-of-range pages snap to the nearest valid page."""
        assert paginate(list(range(25)), page=9).page == 3
        assert paginate(list(range(25)), page=0).page == 1
        assert paginate(list(range(25)), page=-4).items == tuple(range(10))

    def test_empty(self):
        page = paginate([], page=2)
        assert page.items == ()
        assert page.total_pages == 0

    def test_per_page_must_be_positive(self):
        with pytest.raises(ValueError):
            paginate([1, 2], per_page=0)


class TestAlertHistory:

    def test_load_from_dicts(self):
        rows = [{
            "id": "a1", "title": "Reunião", "sentAt": "2024-03-15",
            "recipients": [{"id": "1", "name": "Ana", "status": "viewed"}, {"id": "2", "name": "Bia"}],
            "channel": "app",
        }]
        history = AlertHistory(on_load_alerts=lambda: rows)

        alerts = asyncio.run(history.load())

        assert [a.id for a in alerts] == ["a1"]
        assert alerts[0].sent_at == "2024-03-15"
        assert alerts[0].viewed_count == 1
        assert alerts[0].extra == {"channel": "app"}

    def test_failed_load_keeps_rows(self):
        history = AlertHistory(on_load_alerts=lambda: [AlertTableItem(id="a1", title="T")])
        asyncio.run(history.load())

        def broken():
            raise RuntimeError("offline")

        history.on_load_alerts = broken
        assert [a.id for a in asyncio.run(history.load())] == ["a1"]

    def test_delete_calls_collaborator_then_drops(self):
        deleted = []

        async def delete(alert_id):
            deleted.append(alert_id)

        history = AlertHistory(on_load_alerts=lambda: [AlertTableItem(id="a1", title="T"), AlertTableItem(id="a2", title="U")],
                               on_delete_alert=delete)
        asyncio.run(history.load())

        assert asyncio.run(history.delete("a1")) is True
        assert deleted == ["a1"]
        assert [a.id for a in history.alerts] == ["a2"]

    def test_failed_delete_keeps_row(self):
        def delete(alert_id):
            raise PermissionError("negado")

        history = AlertHistory(on_load_alerts=lambda: [AlertTableItem(id="a1", title="T")], on_delete_alert=delete)
        asyncio.run(history.load())

        assert asyncio.run(history.delete("a1")) is False
        assert history.get("a1") is not None

    def test_recipients_page(self):
        alert = AlertTableItem(id="a1", title="T", recipients=tuple(_recipients(12)))
        history = AlertHistory(on_load_alerts=lambda: [alert])
        asyncio.run(history.load())

        page = history.recipients_page("a1", page=2)
        assert [r.id for r in page.items] == ["10", "11"]
        assert history.recipients_page("missing").items == ()

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            RecipientStatus.from_dict({"id": "1", "name": "Ana", "status": "lost"})


def test_malformed_row_keeps_previous_rows():
    """Test that one unparseable row leaves the cache exactly as it was."""
    history = AlertHistory(on_load_alerts=lambda: [AlertTableItem(id="a1", title="T"), AlertTableItem(id="a0", title="U")])
    asyncio.run(history.load())

    history.on_load_alerts = lambda: [
        {"id": "a2", "title": "Novo"},
        {"id": "a3", "title": "Quebrado", "recipients": [{"id": "1", "name": "Ana", "status": "bogus"}]},
    ]
    alerts = asyncio.run(history.load())

    assert [a.id for a in alerts] == ["a1", "a0"]
    assert [a.id for a in history.alerts] == ["a1", "a0"]
