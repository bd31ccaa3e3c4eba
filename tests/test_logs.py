from sqlalchemy.exc import SQLAlchemyError

from scaneia.services import store


def test_logs_page_and_analysis(app, logged_in, completions):
    with logged_in.session_transaction() as sess:
        uid = sess["user_id"]
    with app.app_context():
        site_id = store.add_site(uid, "https://exemplo.com")
        scan_id = store.add_scan(site_id, [], "r")
        store.add_log("INFO", "Varredura concluída", scan_id)
        store.add_log("ERROR", "não é deste usuário", "other-scan")

    page = logged_in.get("/logs").get_data(as_text=True)
    assert "Varredura concluída" in page
    assert "não é deste usuário" not in page

    completions.text = "Nenhum padrão suspeito."
    page = logged_in.post("/logs/analyze").get_data(as_text=True)
    assert "Nenhum padrão suspeito." in page
    assert "Varredura concluída" in completions.requests[0]["messages"][1]["content"]


def test_analysis_without_logs_skips_the_model(logged_in, completions):
    page = logged_in.post("/logs/analyze").get_data(as_text=True)
    assert "Nenhum log disponível para análise." in page
    assert completions.requests == []


def test_logs_page_survives_database_errors(logged_in, monkeypatch):
    def broken(uid):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(store, "get_user_sites", broken)
    resp = logged_in.get("/logs")
    assert resp.status_code == 200
    assert "Erro ao carregar logs." in resp.get_data(as_text=True)
