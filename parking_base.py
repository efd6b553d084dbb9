import threading
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional


class ParkingError(Exception):
    """Erreur de base du système de parking."""


class InvalidAllocation(ParkingError):
    """
    Tentative de garer un véhicule sur une place occupée ou d'un autre type.

    Violation du contrat de l'appelant : Level ne déclenche jamais cette erreur
    car il filtre les places par type et disponibilité avant de les réclamer.
    """


class VehicleType(Enum):
    """Catégories de véhicules. Chaque place n'accepte qu'une seule catégorie."""

    CAR = "voiture"
    TRUCK = "camion"
    MOTORCYCLE = "moto"

    @property
    def libelle(self) -> str:
        return self.value


@dataclass(frozen=True)
class Vehicle:
    """
    Véhicule identifié par sa plaque d'immatriculation.

    Attributes:
        license_plate: Plaque, supposée unique parmi les véhicules garés
        vehicle_type: Catégorie du véhicule
    """

    license_plate: str
    vehicle_type: VehicleType

    @classmethod
    def car(cls, license_plate: str) -> "Vehicle":
        return cls(license_plate, VehicleType.CAR)

    @classmethod
    def truck(cls, license_plate: str) -> "Vehicle":
        return cls(license_plate, VehicleType.TRUCK)

    @classmethod
    def motorcycle(cls, license_plate: str) -> "Vehicle":
        return cls(license_plate, VehicleType.MOTORCYCLE)


class SpotStatus(NamedTuple):
    """Une ligne d'instantané : état d'une place à un moment donné."""

    floor: int
    spot_number: int
    vehicle_type: VehicleType
    occupied: bool
    license_plate: Optional[str]


class ParkingSpot:
    """
    Place de stationnement réservée à un seul type de véhicule.

    Deux états possibles : libre ou occupée par un véhicule. Toutes les
    opérations passent par un verrou propre à la place, de sorte que la
    vérification de disponibilité et la prise de la place sont atomiques.

    Attributes:
        spot_number: Numéro de la place, unique dans son niveau
        floor: Identifiant du niveau propriétaire
        parked_vehicle: Véhicule garé, ou None si la place est libre
    """

    def __init__(self, spot_number: int, vehicle_type: VehicleType, floor: int = 0) -> None:
        self.spot_number = spot_number
        self.floor = floor
        self._vehicle_type = vehicle_type
        self._parked_vehicle: Optional[Vehicle] = None
        self._lock = threading.Lock()

    @property
    def vehicle_type(self) -> VehicleType:
        return self._vehicle_type

    @property
    def parked_vehicle(self) -> Optional[Vehicle]:
        with self._lock:
            return self._parked_vehicle

    def __repr__(self) -> str:
        return f"ParkingSpot({self.floor}-{self.spot_number}: {self._vehicle_type.name})"

    def is_available(self) -> bool:
        with self._lock:
            return self._parked_vehicle is None

    def try_allocate(self, vehicle: Vehicle) -> bool:
        """
        Tente de garer le véhicule sur cette place.

        Args:
            vehicle: Le véhicule à garer

        Returns:
            True si la place a été prise, False si elle est occupée ou d'un autre type
        """
        with self._lock:
            if self._parked_vehicle is not None or vehicle.vehicle_type != self._vehicle_type:
                return False
            self._parked_vehicle = vehicle
            return True

    def allocate(self, vehicle: Vehicle) -> None:
        """
        Gare le véhicule, la place doit être libre et du bon type.

        Raises:
            InvalidAllocation: Place occupée ou type de véhicule différent
        """
        if not self.try_allocate(vehicle):
            raise InvalidAllocation(
                f"Place {self.spot_number} ({self._vehicle_type.name}) : type de véhicule "
                f"invalide ou place déjà occupée (véhicule {vehicle.license_plate})."
            )

    def release(self) -> Optional[Vehicle]:
        """Libère la place. Sans effet si elle est déjà libre."""
        with self._lock:
            previous, self._parked_vehicle = self._parked_vehicle, None
            return previous

    def release_if_parked(self, license_plate: str) -> Optional[Vehicle]:
        """
        Libère la place seulement si le véhicule garé porte cette plaque.

        Returns:
            Le véhicule libéré, ou None si la plaque ne correspond pas
        """
        with self._lock:
            current = self._parked_vehicle
            if current is None or current.license_plate != license_plate:
                return None
            self._parked_vehicle = None
            return current

    def status(self) -> SpotStatus:
        with self._lock:
            vehicle = self._parked_vehicle
        return SpotStatus(
            floor=self.floor,
            spot_number=self.spot_number,
            vehicle_type=self._vehicle_type,
            occupied=vehicle is not None,
            license_plate=vehicle.license_plate if vehicle is not None else None,
        )
