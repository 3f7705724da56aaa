import html
import os
from datetime import date, time
from urllib.parse import quote

import requests
import streamlit as st

from yoon.core.errors import InvalidCredentialsError
from yoon.services.credentials import PinCredentialStore, UnlockResult

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")


class SessionSecureStorage:
    """Keeps the PIN material in the Streamlit session, like a device keychain."""

    def __init__(self, state) -> None:
        self.items = state.setdefault("secure_store", {})

    def get(self, key: str):
        return self.items.get(key)

    def set(self, key: str, value: str) -> None:
        self.items[key] = value

    def delete(self, key: str) -> None:
        self.items.pop(key, None)


def _headers() -> dict:
    token = st.session_state.get("token")
    return {"Authorization": f"Bearer {token}"} if token else {}


def _error_message(resp: requests.Response) -> str:
    try:
        return resp.json().get("detail", resp.text)
    except ValueError:
        return resp.text


def api(method: str, path: str, **kwargs):
    resp = requests.request(
        method, f"{BACKEND_URL}{path}", headers=_headers(), timeout=15, **kwargs
    )
    if resp.status_code >= 400:
        raise RuntimeError(_error_message(resp))
    return resp.json() if resp.content else None


def sign_in(email: str, password: str) -> dict:
    resp = requests.post(
        f"{BACKEND_URL}/auth/signin",
        json={"email": email, "password": password},
        timeout=15,
    )
    if resp.status_code == 401:
        raise InvalidCredentialsError()
    if resp.status_code >= 400:
        raise RuntimeError(_error_message(resp))
    return resp.json()


def start_session(session: dict) -> None:
    st.session_state["token"] = session["token"]
    st.session_state["user"] = session["user"]


pin_store = PinCredentialStore(SessionSecureStorage(st.session_state), sign_in=sign_in)

st.set_page_config(page_title="Yoon", layout="wide")
st.title("Yoon - covoiturage")

user = st.session_state.get("user")

if not user:
    if pin_store.has_pin():
        with st.form("pin_form"):
            pin = st.text_input("Code PIN", type="password", max_chars=4)
            if st.form_submit_button("Déverrouiller"):
                result = pin_store.login_with_pin(pin)
                if result.success:
                    start_session(result.session)
                    st.rerun()
                else:
                    st.error(result.error)

    login_tab, signup_tab = st.tabs(["Connexion", "Inscription"])
    with login_tab, st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Mot de passe", type="password")
        if st.form_submit_button("Se connecter"):
            try:
                start_session(sign_in(email, password))
                st.rerun()
            except (InvalidCredentialsError, RuntimeError) as exc:
                st.error(getattr(exc, "message", str(exc)))
    with signup_tab, st.form("signup_form"):
        name = st.text_input("Nom")
        phone = st.text_input("Téléphone")
        email = st.text_input("Email", key="signup_email")
        password = st.text_input("Mot de passe", type="password", key="signup_password")
        new_pin = st.text_input("Code PIN (4 chiffres)", type="password", max_chars=4)
        if st.form_submit_button("Créer un compte"):
            try:
                session = api(
                    "POST",
                    "/auth/signup",
                    json={"name": name, "email": email, "phone": phone, "password": password},
                )
                if new_pin:
                    pin_store.save_pin(new_pin, email, password)
                start_session(session)
                st.rerun()
            except Exception as exc:  # noqa: BLE001
                st.error(getattr(exc, "message", str(exc)))
    st.stop()

st.sidebar.write(f"Connecté: **{user['name']}**")
if st.sidebar.button("Se déconnecter"):
    api("POST", "/auth/signout")
    st.session_state.pop("token", None)
    st.session_state.pop("user", None)
    st.rerun()

with st.sidebar.expander("Code PIN"):
    with st.form("pin_setup_form"):
        pin_password = st.text_input("Mot de passe", type="password", key="pin_password")
        chosen_pin = st.text_input(
            "Nouveau code PIN (4 chiffres)", type="password", max_chars=4, key="pin_new"
        )
        label = "Changer le PIN" if pin_store.has_pin() else "Créer un PIN"
        if st.form_submit_button(label):
            if not pin_store.is_valid_pin(chosen_pin):
                st.error("Le PIN doit contenir 4 chiffres")
            else:
                try:
                    result = pin_store.reset_pin(user["email"], pin_password, chosen_pin)
                except RuntimeError as exc:
                    result = UnlockResult(success=False, error=str(exc))
                if result.success:
                    start_session(result.session)
                    st.success("Code PIN enregistré")
                else:
                    st.error(result.error)
    if pin_store.has_pin() and st.button("Supprimer le PIN"):
        pin_store.clear()
        st.rerun()

search_tab, publish_tab, bookings_tab, trips_tab = st.tabs(
    ["Rechercher", "Publier", "Mes réservations", "Mes trajets"]
)

with search_tab:
    col1, col2 = st.columns(2)
    departure = col1.text_input("Départ")
    destination = col2.text_input("Destination")
    try:
        trips = api(
            "GET", "/trips", params={"departure": departure, "destination": destination}
        )["trips"]
    except Exception as exc:  # noqa: BLE001
        st.error(f"Impossible de charger les trajets: {exc}")
        trips = []

    st.caption(f"{len(trips)} trajet(s) disponible(s)")
    for trip in trips:
        with st.expander(
            f"{trip['departure']} → {trip['destination']} | {trip['date']} à {trip['time']}"
        ):
            st.markdown(
                f"Conducteur: **{trip['driver_name']}** | "
                f"Prix: {trip['price']:.0f} CFA | Places: {trip['available_seats']}"
            )
            if trip["driver_id"] == user["user_id"] or trip["available_seats"] < 1:
                continue
            seats = st.number_input(
                "Places",
                min_value=1,
                max_value=int(trip["available_seats"]),
                value=1,
                key=f"seats_{trip['trip_id']}",
            )
            st.write(f"Total: {seats * trip['price']:.0f} CFA")
            if st.button("Réserver", key=f"book_{trip['trip_id']}"):
                try:
                    api("POST", f"/trips/{trip['trip_id']}/bookings", json={"seats": int(seats)})
                    st.success("Votre réservation a été confirmée !")
                except Exception as exc:  # noqa: BLE001
                    st.error(str(exc))

with publish_tab, st.form("publish_form"):
    departure = st.text_input("Ville de départ")
    destination = st.text_input("Ville d'arrivée")
    trip_date = st.date_input("Date", value=date.today())
    trip_time = st.time_input("Heure", value=time(8, 0))
    price = st.number_input("Prix par place (CFA)", min_value=0.0, step=500.0)
    seat_count = st.number_input("Places disponibles", min_value=1, max_value=8, value=3)
    if st.form_submit_button("Publier le trajet"):
        try:
            api(
                "POST",
                "/trips",
                json={
                    "departure": departure,
                    "destination": destination,
                    "date": trip_date.isoformat(),
                    "time": trip_time.strftime("%H:%M"),
                    "price": price,
                    "seats": int(seat_count),
                },
            )
            st.success("Votre trajet a été publié !")
        except Exception as exc:  # noqa: BLE001
            st.error(str(exc))

with bookings_tab:
    try:
        entries = api("GET", "/bookings/mine")["bookings"]
    except Exception as exc:  # noqa: BLE001
        st.error(f"Impossible de charger vos réservations: {exc}")
        entries = []
    for entry in entries:
        booking, trip = entry["booking"], entry["trip"]
        title = (
            f"{trip['departure']} → {trip['destination']} | {trip['date']} à {trip['time']}"
            if trip
            else "Trajet supprimé"
        )
        st.markdown(
            f"- **{title}** | {booking['seats_booked']} place(s) | "
            f"{booking['total_price']:.0f} CFA | {booking['status']}"
        )
        share_col, cancel_col = st.columns(2)
        if share_col.button("Partager", key=f"share_{booking['booking_id']}"):
            st.code(api("GET", f"/bookings/{booking['booking_id']}/share")["message"])
        if cancel_col.button("Annuler", key=f"cancel_{booking['booking_id']}"):
            try:
                api("DELETE", f"/bookings/{booking['booking_id']}")
                st.success("Réservation annulée")
                st.rerun()
            except Exception as exc:  # noqa: BLE001
                st.error(str(exc))

with trips_tab:
    try:
        my_trips = api("GET", "/trips/mine")["trips"]
    except Exception as exc:  # noqa: BLE001
        st.error(f"Impossible de charger vos trajets: {exc}")
        my_trips = []
    for trip in my_trips:
        with st.expander(f"{trip['departure']} → {trip['destination']} | {trip['date']}"):
            details = api("GET", f"/trips/{trip['trip_id']}/passengers")
            totals = details["aggregates"]
            cols = st.columns(3)
            cols[0].metric("Passagers", totals["passenger_count"])
            cols[1].metric("Places réservées", totals["total_seats_booked"])
            cols[2].metric("Revenus", f"{totals['total_revenue']:.0f} CFA")
            for passenger in details["passengers"]:
                phone = quote(passenger["passenger_phone"].replace(" ", ""), safe="+")
                contact = (
                    f' | <a href="tel:{phone}">Appeler</a> | <a href="sms:{phone}">SMS</a>'
                    if phone
                    else ""
                )
                st.markdown(
                    f"- {html.escape(passenger['passenger_name'])} "
                    f"({html.escape(passenger['passenger_phone'])}) | "
                    f"{passenger['seats_booked']} place(s){contact}",
                    unsafe_allow_html=True,
                )
            if st.button("Supprimer le trajet", key=f"delete_{trip['trip_id']}"):
                try:
                    api("DELETE", f"/trips/{trip['trip_id']}")
                    st.success("Trajet supprimé")
                    st.rerun()
                except Exception as exc:  # noqa: BLE001
                    st.error(str(exc))
