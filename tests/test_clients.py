def test_create_client_requires_name_and_phone(client):
    r = client.post("/clients", json={"full_name": "Ana Silva"})
    assert r.status_code == 400
    assert r.json() == {"error": "Nome completo e telefone são obrigatórios"}

    r = client.post("/clients", json={"full_name": "   ", "phone": "11999990000"})
    assert r.status_code == 400


def test_create_and_get_client(client):
    r = client.post("/clients", json={
        "full_name": "Beatriz Costa",
        "email": "bia.costa@gmail.com",
        "phone": "(11) 98888-0000",
        "birth_date": "1990-05-20",
        "gender": "feminino",
    })
    assert r.status_code == 201
    body = r.json()
    assert body["full_name"] == "Beatriz Costa"
    assert body["birth_date"] == "1990-05-20"
    assert body["gender"] == "feminino"

    r = client.get(f"/clients/{body['id']}")
    assert r.status_code == 200
    assert r.json()["email"] == "bia.costa@gmail.com"


def test_gender_defaults_and_blank_email_is_null(client):
    r = client.post("/clients", json={"full_name": "Carla Dias", "phone": "11977776666", "email": ""})
    assert r.status_code == 201
    assert r.json()["gender"] == "nao_informado"
    assert r.json()["email"] is None


def test_duplicate_email_is_rejected(client, cliente):
    r = client.post("/clients", json={
        "full_name": "Outra Ana",
        "email": "ana.silva@gmail.com",
        "phone": "11911112222",
    })
    assert r.status_code == 400
    assert r.json() == {"error": "Email já cadastrado"}


def test_invalid_email_is_a_400(client):
    r = client.post("/clients", json={"full_name": "Duda", "phone": "11911112222", "email": "nao-e-email"})
    assert r.status_code == 400
    assert r.json()["error"].startswith("Dados inválidos")


def test_missing_client_is_404(client):
    r = client.get("/clients/999")
    assert r.status_code == 404
    assert r.json() == {"error": "Cliente não encontrado"}


def test_list_search_and_pagination(client):
    for i in range(3):
        client.post("/clients", json={"full_name": f"Maria {i}", "phone": f"1190000000{i}"})
    client.post("/clients", json={"full_name": "Joana", "phone": "11955554444"})

    r = client.get("/clients", params={"search": "maria", "limit": 2})
    assert r.status_code == 200
    body = r.json()
    assert [c["full_name"] for c in body["data"]] == ["Maria 0", "Maria 1"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    r = client.get("/clients", params={"search": "maria", "limit": 2, "page": 2})
    assert [c["full_name"] for c in r.json()["data"]] == ["Maria 2"]


def test_partial_update_keeps_other_fields(client, cliente):
    r = client.put(f"/clients/{cliente['id']}", json={"observations": "Pele sensível", "phone": None})
    assert r.status_code == 200
    body = r.json()
    assert body["observations"] == "Pele sensível"
    assert body["phone"] == cliente["phone"]
    assert body["full_name"] == "Ana Silva"


def test_delete_client_without_appointments(client, cliente):
    r = client.delete(f"/clients/{cliente['id']}")
    assert r.status_code == 200
    assert r.json() == {"message": "Cliente removido com sucesso"}
    assert client.get(f"/clients/{cliente['id']}").status_code == 404


def test_client_with_appointments_cannot_be_deleted(client, cliente, servico, agendar):
    assert agendar(cliente["id"], servico["id"]).status_code == 201

    r = client.delete(f"/clients/{cliente['id']}")
    assert r.status_code == 400
    assert r.json() == {"error": "Cliente possui agendamentos e não pode ser excluído"}

    r = client.get(f"/clients/{cliente['id']}/appointments")
    assert r.status_code == 200
    assert len(r.json()) == 1
    assert r.json()[0]["service_name"] == "Limpeza de Pele"
