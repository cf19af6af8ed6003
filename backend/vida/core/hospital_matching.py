"""Hospital Matching — pure ranking of medical institutions around a location.

Invariants:
    - Distance filter is inclusive: distance_km <= radius_km
    - "Urgencias" is always part of the required specialty set
    - match_score is an int in 0..100; ranking is deterministic for a fixed input
    - Unknown conditions contribute no specialties (never raise)

Design Decisions:
    - Candidates are plain dataclasses, not ORM rows: the shell converts, core ranks
    - Score = specialty coverage + attention level + critical-care flags
      + 24h + proximity, capped at 100
    - Prioritised order compares scores only when they differ by more than
      SCORE_TIE_WINDOW; closer scores fall back to distance so a marginally
      better hospital across the city never beats the one around the corner
"""

from dataclasses import dataclass, field
from functools import cmp_to_key

from vida.core.domain_types import AttentionLevel
from vida.core.geolocation import haversine_distance

CONDITION_SPECIALTIES: dict[str, list[str]] = {
    "Diabetes": ["Endocrinologia", "Medicina Interna", "Nefrologia", "Oftalmologia"],
    "Hipertension": ["Cardiologia", "Medicina Interna", "Nefrologia"],
    "Cardiopatia": ["Cardiologia", "Cirugia Cardiovascular", "Urgencias"],
    "Infarto": ["Cardiologia", "Cirugia Cardiovascular", "Urgencias", "Terapia Intensiva"],
    "Insuficiencia Cardiaca": ["Cardiologia", "Medicina Interna", "Terapia Intensiva"],
    "EPOC": ["Neumologia", "Medicina Interna", "Urgencias"],
    "Asma": ["Neumologia", "Alergologia", "Urgencias"],
    "Cancer": ["Oncologia", "Cirugia Oncologica", "Radioterapia", "Quimioterapia"],
    "Insuficiencia Renal": ["Nefrologia", "Dialisis", "Medicina Interna"],
    "Epilepsia": ["Neurologia", "Urgencias"],
    "ACV": ["Neurologia", "Neurocirugia", "Urgencias", "Terapia Intensiva"],
    "Alzheimer": ["Neurologia", "Geriatria", "Psiquiatria"],
    "Parkinson": ["Neurologia", "Geriatria"],
    "Fractura": ["Traumatologia", "Ortopedia", "Urgencias"],
    "Trauma": ["Traumatologia", "Cirugia General", "Urgencias", "Terapia Intensiva"],
    "Quemaduras": ["Cirugia Plastica", "Urgencias", "Terapia Intensiva"],
    "Embarazo": ["Ginecologia", "Obstetricia", "Neonatologia"],
    "Embarazo Alto Riesgo": [
        "Ginecologia", "Obstetricia", "Medicina Materno Fetal",
        "Neonatologia", "Terapia Intensiva",
    ],
    "Pediatrico": ["Pediatria", "Urgencias Pediatricas"],
    "Alergias Severas": ["Alergologia", "Urgencias", "Terapia Intensiva"],
}

CRITICAL_CONDITIONS = frozenset({"Infarto", "ACV", "Trauma", "Quemaduras"})
BASE_SPECIALTY = "Urgencias"

LEVEL_BONUS = {AttentionLevel.THIRD: 15, AttentionLevel.SECOND: 5}
ICU_BONUS = 20
TRAUMA_BONUS = 10
H24_BONUS = 5
PROXIMITY_MAX_BONUS = 10
SCORE_TIE_WINDOW = 10
MAX_SCORE = 100


@dataclass(frozen=True)
class HospitalCandidate:
    """Institution fields the ranking needs — built from MedicalInstitution rows."""
    id: str
    name: str
    latitude: float
    longitude: float
    attention_level: AttentionLevel | None = None
    specialties: tuple[str, ...] = ()
    has_emergency: bool = True
    has_24_hours: bool = False
    has_icu: bool = False
    has_trauma: bool = False
    phone: str | None = None
    emergency_phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None


@dataclass(frozen=True)
class RankedHospital:
    hospital: HospitalCandidate
    distance_km: float
    match_score: int | None = None
    matched_specialties: list[str] = field(default_factory=list)

    @property
    def contact_phone(self) -> str | None:
        return self.hospital.emergency_phone or self.hospital.phone

    def to_dict(self) -> dict:
        """JSON-safe snapshot stored on PanicAlert and returned by the API."""
        h = self.hospital
        data = {
            "id": h.id,
            "name": h.name,
            "latitude": h.latitude,
            "longitude": h.longitude,
            "address": h.address,
            "city": h.city,
            "state": h.state,
            "phone": h.phone,
            "emergency_phone": h.emergency_phone,
            "attention_level": h.attention_level.value if h.attention_level else None,
            "specialties": list(h.specialties),
            "has_emergency": h.has_emergency,
            "has_24_hours": h.has_24_hours,
            "has_icu": h.has_icu,
            "has_trauma": h.has_trauma,
            "distance_km": round(self.distance_km, 3),
        }
        if self.match_score is not None:
            data["match_score"] = self.match_score
            data["matched_specialties"] = list(self.matched_specialties)
        return data


def known_conditions() -> list[str]:
    return list(CONDITION_SPECIALTIES)


def required_specialties(conditions: list[str]) -> list[str]:
    """Ordered, de-duplicated union of specialties for the given conditions."""
    seen: dict[str, None] = {}
    for condition in conditions:
        for specialty in CONDITION_SPECIALTIES.get(condition, []):
            seen.setdefault(specialty, None)
    return list(seen)


def _specialty_matches(required: str, offered: str) -> bool:
    r, o = required.lower(), offered.lower()
    return r in o or o in r


def matched_specialties(required: list[str], offered: tuple[str, ...]) -> list[str]:
    return [
        specialty for specialty in required
        if any(_specialty_matches(specialty, hs) for hs in offered)
    ]


def score_hospital(
    candidate: HospitalCandidate,
    required: list[str],
    conditions: list[str],
    distance_km: float,
    radius_km: float,
) -> tuple[int, list[str]]:
    """Deterministic weighted score (0..100) and the specialties that matched."""
    matched = matched_specialties(required, candidate.specialties)
    coverage = round(len(matched) / len(required) * 100) if required else 0

    score = coverage
    score += LEVEL_BONUS.get(candidate.attention_level, 0)
    if any(c in CRITICAL_CONDITIONS for c in conditions):
        if candidate.has_icu:
            score += ICU_BONUS
        if candidate.has_trauma:
            score += TRAUMA_BONUS
    if candidate.has_24_hours:
        score += H24_BONUS
    if radius_km > 0:
        score += max(0, round(PROXIMITY_MAX_BONUS * (1 - distance_km / radius_km)))
    return min(score, MAX_SCORE), matched


def _with_distance(
    candidates: list[HospitalCandidate], lat: float, lon: float, radius_km: float,
) -> list[tuple[HospitalCandidate, float]]:
    pairs = [
        (c, haversine_distance(lat, lon, c.latitude, c.longitude))
        for c in candidates
    ]
    return [(c, d) for c, d in pairs if d <= radius_km]


def filter_nearby(
    candidates: list[HospitalCandidate],
    lat: float,
    lon: float,
    radius_km: float,
    limit: int,
) -> list[RankedHospital]:
    """Plain distance search: inside radius, nearest first."""
    within = _with_distance(candidates, lat, lon, radius_km)
    within.sort(key=lambda pair: (pair[1], pair[0].id))
    return [RankedHospital(c, d) for c, d in within[:limit]]


def _compare_prioritised(a: RankedHospital, b: RankedHospital) -> int:
    diff = (b.match_score or 0) - (a.match_score or 0)
    if abs(diff) > SCORE_TIE_WINDOW:
        return diff
    if a.distance_km != b.distance_km:
        return -1 if a.distance_km < b.distance_km else 1
    return (a.hospital.id > b.hospital.id) - (a.hospital.id < b.hospital.id)


def rank_for_conditions(
    candidates: list[HospitalCandidate],
    lat: float,
    lon: float,
    conditions: list[str],
    radius_km: float,
    limit: int,
    prioritize_by_condition: bool = True,
) -> list[RankedHospital]:
    """Condition-aware search over emergency-capable institutions."""
    required = required_specialties(conditions)
    if BASE_SPECIALTY not in required:
        required.append(BASE_SPECIALTY)

    ranked = []
    for candidate, distance in _with_distance(
        [c for c in candidates if c.has_emergency], lat, lon, radius_km,
    ):
        score, matched = score_hospital(
            candidate, required, conditions, distance, radius_km,
        )
        ranked.append(RankedHospital(candidate, distance, score, matched))

    if prioritize_by_condition:
        # windowed comparator is order-sensitive; fix the input order first
        ranked.sort(key=lambda r: (r.distance_km, r.hospital.id))
        ranked.sort(key=cmp_to_key(_compare_prioritised))
    else:
        ranked.sort(key=lambda r: (r.distance_km, r.hospital.id))
    return ranked[:limit]


def summarize_for_notification(ranked: list[RankedHospital]) -> list[dict]:
    """Compact hospital list for SMS/email templates."""
    return [
        {
            "name": r.hospital.name,
            "distance_km": r.distance_km,
            "phone": r.contact_phone,
            "match_score": r.match_score,
        }
        for r in ranked
    ]
