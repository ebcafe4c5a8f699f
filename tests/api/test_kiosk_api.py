import pytest
from fastapi.testclient import TestClient


class TestKioskApi:
    """キオスクAPIのテスト"""

    @pytest.fixture
    def client(self, monkeypatch):
        """テスト用のFastAPIクライアント（起動イベントを実行する）"""
        monkeypatch.delenv("DRIVE_ACCESS_TOKEN", raising=False)
        monkeypatch.delenv("KIOSK_IDLE_TIMEOUT_SEC", raising=False)
        from kiosk.api.main import app

        with TestClient(app) as client:
            yield client

    def _go_to_appointment_verification(self, client, png_b64):
        assert client.post("/navigation/advance", json={"page": "menu"}).status_code == 200
        assert (
            client.post("/navigation/advance", json={"page": "appointment_text_entry"}).status_code
            == 200
        )
        client.put(
            "/forms/appointment",
            json={
                "caregiver_first_name": "Maria",
                "caregiver_last_name": "Lopez",
                "child_first_name": "Ana",
                "child_last_name": "Lopez",
            },
        )
        client.post("/navigation/advance", json={"page": "appointment_signature"})
        client.post("/forms/appointment/signature", json={"image": png_b64})
        client.post("/navigation/advance", json={"page": "appointment_photo_instruction"})
        client.post("/navigation/advance", json={"page": "appointment_camera"})
        client.post("/forms/appointment/photo", json={"image": f"data:image/png;base64,{png_b64}"})
        response = client.post(
            "/navigation/advance", json={"page": "appointment_photo_verification"}
        )
        assert response.status_code == 200

    def test_initial_status(self, client):
        """起動直後はホーム画面でアイドルタイマーが動いている"""
        response = client.get("/status")

        assert response.status_code == 200
        status = response.json()
        assert status["page"] == "home_rotation"
        assert status["stack"] == ["home_rotation"]
        assert status["idle"]["state"] == "armed"
        assert status["idle"]["timeout_sec"] == 180
        assert status["uploads_enabled"] is False

    def test_activity_endpoint(self, client):
        response = client.post("/activity", json={"kind": "keyboard"})
        assert response.status_code == 200
        assert response.json() == {"ok": True, "idle": "armed"}

    def test_activity_rejects_unknown_kind(self, client):
        response = client.post("/activity", json={"kind": "shake"})
        assert response.status_code == 422

    def test_suspend_and_resume(self, client):
        """suspend で DISARMED、resume で ARMED に戻る"""
        assert client.post("/session/suspend").json()["idle"] == "disarmed"
        assert client.get("/status").json()["idle"]["seconds_remaining"] is None

        assert client.post("/session/resume").json()["idle"] == "armed"

    def test_background_and_foreground(self, client):
        assert client.post("/app/background").json()["idle"] == "disarmed"
        assert client.post("/app/foreground").json()["idle"] == "armed"

    def test_invalid_transition_conflict(self, client):
        """ホームから完了画面へは進めない"""
        response = client.post("/navigation/advance", json={"page": "interpreter_confirmation"})

        assert response.status_code == 409
        assert client.get("/status").json()["page"] == "home_rotation"

    def test_incomplete_form_conflict(self, client):
        client.post("/navigation/advance", json={"page": "menu"})
        client.post("/navigation/advance", json={"page": "appointment_text_entry"})
        client.put("/forms/appointment", json={"child_first_name": "Ana"})

        response = client.post("/navigation/advance", json={"page": "appointment_signature"})

        assert response.status_code == 409
        assert "names" in response.json()["detail"]

    def test_partial_form_update(self, client):
        """指定した欄だけ更新される"""
        client.put("/forms/interpreter", json={"language": "Spanish"})
        response = client.put("/forms/interpreter", json={"interpreting_agency": "Acme"})

        assert response.status_code == 200
        assert response.json()["is_complete"] is False

    def test_invalid_image_rejected(self, client):
        response = client.post("/forms/appointment/signature", json={"image": "not-base64!!"})
        assert response.status_code == 422

        response = client.post(
            "/forms/appointment/signature", json={"image": "aGVsbG8gd29ybGQ="}
        )
        assert response.status_code == 422

    def test_back_navigation(self, client):
        client.post("/navigation/advance", json={"page": "menu"})
        response = client.post("/navigation/back")
        assert response.json()["page"] == "home_rotation"

    def test_retake_photo(self, client, png_b64):
        self._go_to_appointment_verification(client, png_b64)

        response = client.post("/forms/appointment/photo/retake")

        assert response.status_code == 200
        assert response.json()["page"] == "appointment_camera"
        assert client.get("/status").json()["appointment"]["has_photo"] is False

    def test_appointment_flow_and_finish(self, client, png_b64):
        """予約フローを完了し Finish でホームに戻りデータが消える"""
        self._go_to_appointment_verification(client, png_b64)

        response = client.post(
            "/navigation/advance", json={"page": "appointment_confirmation"}
        )
        assert response.status_code == 200
        status = client.get("/status").json()
        assert status["auto_return"]["appointment_confirmation"] is True

        response = client.post("/confirmation/finish")

        assert response.status_code == 200
        assert response.json()["page"] == "home_rotation"
        status = client.get("/status").json()
        assert status["appointment"] == {
            "names_complete": False,
            "has_signature": False,
            "has_photo": False,
        }
        assert status["auto_return"]["appointment_confirmation"] is False

    def test_back_from_confirmation_conflict(self, client, png_b64):
        """完了画面での「戻る」は 409 になり画面は変わらない"""
        self._go_to_appointment_verification(client, png_b64)
        client.post("/navigation/advance", json={"page": "appointment_confirmation"})

        response = client.post("/navigation/back")

        assert response.status_code == 409
        status = client.get("/status").json()
        assert status["page"] == "appointment_confirmation"
        assert status["auto_return"]["appointment_confirmation"] is True

    def test_image_upload_decodes_once(self, png_bytes, png_b64):
        """検証済みモデルはデコード済みの画像バイト列を持つ"""
        from kiosk.api.main import ImageUpload

        assert ImageUpload(image=png_b64).image == png_bytes
        assert ImageUpload(image=f"data:image/png;base64,{png_b64}").image == png_bytes

    def test_image_upload_rejects_non_string(self, client):
        response = client.post("/forms/interpreter/signature", json={"image": 123})
        assert response.status_code == 422

    def test_interpreter_flow(self, client, png_b64):
        client.post("/navigation/advance", json={"page": "menu"})
        client.post("/navigation/advance", json={"page": "interpreter_form_signature"})
        client.put(
            "/forms/interpreter",
            json={
                "child_first_name": "Ana",
                "child_last_name": "Lopez",
                "interpreter_first_name": "Lee",
                "interpreter_last_name": "Kim",
                "interpreting_agency": "Acme Language",
                "language": "Spanish",
            },
        )
        response = client.post("/forms/interpreter/signature", json={"image": png_b64})
        assert response.json()["is_complete"] is True

        response = client.post(
            "/navigation/advance", json={"page": "interpreter_confirmation"}
        )
        assert response.status_code == 200
        assert response.json()["page"] == "interpreter_confirmation"

    def test_finish_outside_confirmation(self, client):
        response = client.post("/confirmation/finish")
        assert response.status_code == 409

    def test_home_slide(self, client):
        response = client.get("/screens/home")

        assert response.status_code == 200
        data = response.json()
        assert data["button_text"] == "Check-In Here"
        assert data["interval_sec"] == 1.5
        assert 0 <= data["index"] < 4

    def test_monitoring_data(self, client):
        """モニタリング用データにログと状態が含まれる"""
        client.post("/session/suspend")

        data = client.get("/api/monitoring_data").json()

        assert data["status"]["idle"]["state"] == "disarmed"
        assert any("Kiosk ready" in line for line in data["logs"])
        assert any("suspended" in line for line in data["logs"])

    def test_monitoring_page(self, client):
        response = client.get("/monitoring")
        assert response.status_code == 200
        assert "Check-In Kiosk Monitor" in response.text
