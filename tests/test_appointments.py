from concurrent.futures import ThreadPoolExecutor

from app.core.timezone_utils import today_in_brazil
from app.services import agendamentos as booking


def _avancar(client, appointment_id, *statuses):
    for status in statuses:
        r = client.put(f"/appointments/{appointment_id}", json={"status": status})
        assert r.status_code == 200, r.text
    return r.json()


def test_book_and_reject_double_booking(client, cliente, servico, agendar):
    r = agendar(cliente["id"], servico["id"], "2025-01-15", "10:00")
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "scheduled"
    assert body["total_price"] == 120.0
    assert body["appointment_time"] == "10:00:00"
    assert body["client_name"] == "Ana Silva"
    assert body["service_name"] == "Limpeza de Pele"
    assert body["duration_minutes"] == 60

    r = agendar(cliente["id"], servico["id"], "2025-01-15", "10:00")
    assert r.status_code == 400
    assert r.json() == {"error": "Já existe um agendamento neste horário"}


def test_required_fields(client, agendar):
    r = client.post("/appointments", json={"client_id": 1, "appointment_date": "2025-01-15"})
    assert r.status_code == 400
    assert r.json() == {"error": "Cliente, serviço, data e horário são obrigatórios"}

    r = agendar(1, 1, appointment_time="")
    assert r.status_code == 400
    assert r.json() == {"error": "Cliente, serviço, data e horário são obrigatórios"}


def test_unknown_references_are_rejected(client, cliente, servico, agendar):
    r = agendar(999, servico["id"])
    assert r.status_code == 400
    assert r.json() == {"error": "Cliente 999 não encontrado"}

    r = agendar(cliente["id"], 999)
    assert r.status_code == 400
    assert r.json() == {"error": "Serviço 999 não encontrado"}

    assert client.get("/appointments").json() == []


def test_inactive_service_cannot_be_booked(client, cliente, servico, agendar):
    client.put(f"/services/{servico['id']}", json={"status": "inactive"})
    r = agendar(cliente["id"], servico["id"])
    assert r.status_code == 400
    assert "inativo" in r.json()["error"]


def test_price_is_frozen_at_booking(client, cliente, servico, agendar):
    ag = agendar(cliente["id"], servico["id"]).json()
    client.put(f"/services/{servico['id']}", json={"price": 200})
    assert client.get(f"/appointments/{ag['id']}").json()["total_price"] == 120.0


def test_supplied_price_overrides_service_price(client, cliente, servico, agendar):
    r = agendar(cliente["id"], servico["id"], total_price=99.5)
    assert r.json()["total_price"] == 99.5


def test_cancel_keeps_row_and_frees_slot(client, cliente, servico, agendar):
    ag = agendar(cliente["id"], servico["id"], "2025-01-15", "10:00").json()

    r = client.delete(f"/appointments/{ag['id']}")
    assert r.status_code == 200
    assert r.json() == {"message": "Agendamento cancelado com sucesso"}

    r = client.get(f"/appointments/{ag['id']}")
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"

    # cancelling again is a no-op
    assert client.delete(f"/appointments/{ag['id']}").status_code == 200

    r = agendar(cliente["id"], servico["id"], "2025-01-15", "10:00")
    assert r.status_code == 201
    assert len(client.get("/appointments", params={"date": "2025-01-15"}).json()) == 2


def test_unique_slot_holds_when_the_check_is_skipped(client, cliente, servico, agendar, monkeypatch):
    # two requests that both passed the conflict check before either wrote
    monkeypatch.setattr(booking, "buscar_conflito", lambda *args, **kwargs: None)

    assert agendar(cliente["id"], servico["id"], "2025-03-10", "16:00").status_code == 201
    r = agendar(cliente["id"], servico["id"], "2025-03-10", "16:00")
    assert r.status_code == 400
    assert r.json() == {"error": "Já existe um agendamento neste horário"}
    assert len(client.get("/appointments", params={"date": "2025-03-10"}).json()) == 1


def test_status_flow(client, cliente, servico, agendar):
    ag = agendar(cliente["id"], servico["id"]).json()

    r = client.put(f"/appointments/{ag['id']}", json={"status": "completed"})
    assert r.status_code == 400

    body = _avancar(client, ag["id"], "confirmed", "completed")
    assert body["status"] == "completed"

    r = client.put(f"/appointments/{ag['id']}", json={"status": "cancelled"})
    assert r.status_code == 400
    assert client.delete(f"/appointments/{ag['id']}").status_code == 400

    # non-status edits are still allowed on a finished appointment
    r = client.put(f"/appointments/{ag['id']}", json={"observations": "Cliente satisfeita"})
    assert r.status_code == 200
    assert r.json()["observations"] == "Cliente satisfeita"


def test_cancelled_is_terminal(client, cliente, servico, agendar):
    ag = agendar(cliente["id"], servico["id"]).json()
    client.delete(f"/appointments/{ag['id']}")
    r = client.put(f"/appointments/{ag['id']}", json={"status": "scheduled"})
    assert r.status_code == 400


def test_reschedule_checks_the_new_slot(client, cliente, servico, agendar):
    agendar(cliente["id"], servico["id"], "2025-01-15", "10:00")
    ag = agendar(cliente["id"], servico["id"], "2025-01-15", "11:00").json()

    r = client.put(f"/appointments/{ag['id']}", json={"appointment_time": "10:00"})
    assert r.status_code == 400
    assert r.json() == {"error": "Já existe um agendamento neste horário"}

    r = client.put(f"/appointments/{ag['id']}", json={"appointment_time": "12:00"})
    assert r.status_code == 200
    assert r.json()["appointment_time"] == "12:00:00"

    # the freed 11:00 slot is bookable again
    assert agendar(cliente["id"], servico["id"], "2025-01-15", "11:00").status_code == 201


def test_update_rejects_unknown_client(client, cliente, servico, agendar):
    ag = agendar(cliente["id"], servico["id"]).json()
    r = client.put(f"/appointments/{ag['id']}", json={"client_id": 999})
    assert r.status_code == 400


def test_missing_appointment_is_404(client):
    assert client.get("/appointments/999").json() == {"error": "Agendamento não encontrado"}
    assert client.put("/appointments/999", json={"status": "confirmed"}).status_code == 404
    assert client.delete("/appointments/999").status_code == 404


def test_list_filters_and_order(client, cliente, servico, agendar):
    agendar(cliente["id"], servico["id"], "2025-01-15", "09:00")
    agendar(cliente["id"], servico["id"], "2025-01-15", "14:00")
    ag = agendar(cliente["id"], servico["id"], "2025-01-16", "08:00").json()
    _avancar(client, ag["id"], "confirmed")

    todos = client.get("/appointments").json()
    assert [(a["appointment_date"], a["appointment_time"]) for a in todos] == [
        ("2025-01-16", "08:00:00"),
        ("2025-01-15", "14:00:00"),
        ("2025-01-15", "09:00:00"),
    ]

    confirmados = client.get("/appointments", params={"status": "confirmed"}).json()
    assert [a["id"] for a in confirmados] == [ag["id"]]

    pagina = client.get("/appointments", params={"limit": 1, "page": 2}).json()
    assert [a["appointment_time"] for a in pagina] == ["14:00:00"]


def test_day_agenda_skips_cancelled(client, cliente, servico, agendar):
    agendar(cliente["id"], servico["id"], "2025-01-15", "14:00")
    agendar(cliente["id"], servico["id"], "2025-01-15", "09:00")
    cancelado = agendar(cliente["id"], servico["id"], "2025-01-15", "11:00").json()
    client.delete(f"/appointments/{cancelado['id']}")

    agenda = client.get("/appointments/agenda/2025-01-15").json()
    assert [a["appointment_time"] for a in agenda] == ["09:00:00", "14:00:00"]


def test_month_view(client, cliente, servico, agendar):
    agendar(cliente["id"], servico["id"], "2025-02-28", "10:00")
    agendar(cliente["id"], servico["id"], "2025-02-01", "10:00")
    agendar(cliente["id"], servico["id"], "2025-03-01", "10:00")

    mes = client.get("/appointments/month/2025/2").json()
    assert [a["appointment_date"] for a in mes] == ["2025-02-01", "2025-02-28"]

    r = client.get("/appointments/month/2025/13")
    assert r.status_code == 400
    assert r.json() == {"error": "Mês inválido"}


def test_today_upcoming(client, cliente, servico, agendar):
    hoje = today_in_brazil().isoformat()
    agendar(cliente["id"], servico["id"], hoje, "15:00")
    agendar(cliente["id"], servico["id"], hoje, "08:30")
    cancelado = agendar(cliente["id"], servico["id"], hoje, "12:00").json()
    client.delete(f"/appointments/{cancelado['id']}")

    proximos = client.get("/appointments/proximos").json()
    assert [a["appointment_time"] for a in proximos] == ["08:30:00", "15:00:00"]


def test_sub_cent_total_price_is_rejected(client, cliente, servico, agendar):
    r = agendar(cliente["id"], servico["id"], total_price=0.001)
    assert r.status_code == 400
    r = agendar(cliente["id"], servico["id"], total_price=99.995)
    assert r.status_code == 400
    assert client.get("/appointments").json() == []


def test_concurrent_bookings_for_one_slot(client, cliente, servico, agendar):
    with ThreadPoolExecutor(max_workers=8) as pool:
        respostas = list(pool.map(
            lambda _: agendar(cliente["id"], servico["id"], "2025-04-02", "15:00"),
            range(8),
        ))

    codigos = sorted(r.status_code for r in respostas)
    assert codigos == [201] + [400] * 7
    assert all(
        r.json() == {"error": "Já existe um agendamento neste horário"}
        for r in respostas if r.status_code == 400
    )
    assert len(client.get("/appointments", params={"date": "2025-04-02"}).json()) == 1
