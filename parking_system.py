import logging
import threading
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from parking_base import ParkingSpot, SpotStatus, Vehicle, VehicleType


logger = logging.getLogger(__name__)

# Constantes de configuration (capacités du parking de démonstration)
CAPACITES_NIVEAU_1 = {VehicleType.CAR: 40, VehicleType.TRUCK: 30, VehicleType.MOTORCYCLE: 30}
CAPACITES_NIVEAU_2 = {VehicleType.CAR: 50, VehicleType.TRUCK: 20, VehicleType.MOTORCYCLE: 10}

Capacites = Union[Mapping[VehicleType, int], Iterable[Tuple[VehicleType, int]]]


class Level:
    """
    Niveau du parking : une suite fixe de places, partitionnée par type.

    Les places sont créées une seule fois à la construction, numérotées à
    partir de 1 et groupées par type dans l'ordre de la table de capacités.

    Attributes:
        floor: Identifiant de l'étage
        spots: Places du niveau, dans l'ordre de construction
    """

    def __init__(self, floor: int, capacites: Capacites) -> None:
        self.floor = floor
        self._capacites = self._copier_capacites(capacites)
        self.spots: List[ParkingSpot] = []
        self._construire_places()
        logger.debug("Niveau %s créé : %d places.", floor, len(self.spots))

    @staticmethod
    def _copier_capacites(capacites: Capacites) -> Dict[VehicleType, int]:
        items = capacites.items() if isinstance(capacites, Mapping) else capacites
        copie: Dict[VehicleType, int] = {}
        for vehicle_type, count in items:
            if not isinstance(vehicle_type, VehicleType):
                raise TypeError(f"Type de véhicule inconnu : {vehicle_type!r}")
            if count < 0:
                raise ValueError(f"Capacité négative pour {vehicle_type.name} : {count}")
            copie[vehicle_type] = copie.get(vehicle_type, 0) + count
        return copie

    def _construire_places(self) -> None:
        numero = 1
        for vehicle_type, count in self._capacites.items():
            for _ in range(count):
                self.spots.append(ParkingSpot(numero, vehicle_type, floor=self.floor))
                numero += 1

    def __repr__(self) -> str:
        return f"Level({self.floor}, {len(self.spots)} places)"

    def allocate(self, vehicle: Vehicle) -> Optional[ParkingSpot]:
        """
        Gare le véhicule sur la première place libre de son type.

        Parcours linéaire dans l'ordre de construction. Une version à grande
        échelle tiendrait une liste de places libres par VehicleType.

        Args:
            vehicle: Le véhicule à garer

        Returns:
            La place attribuée, ou None si aucune place compatible n'est libre
        """
        for spot in self.spots:
            if spot.vehicle_type != vehicle.vehicle_type:
                continue
            # try_allocate échoue si un autre thread vient de prendre la place
            if spot.try_allocate(vehicle):
                return spot
        return None

    def release(self, vehicle: Vehicle) -> Optional[ParkingSpot]:
        """
        Libère la place occupée par le véhicule (recherche par plaque uniquement).

        Returns:
            La place libérée, ou None si le véhicule n'est pas sur ce niveau
        """
        for spot in self.spots:
            if spot.release_if_parked(vehicle.license_plate) is not None:
                return spot
        return None

    def find_vehicle(self, license_plate: str) -> Optional[ParkingSpot]:
        for spot in self.spots:
            parked = spot.parked_vehicle
            if parked is not None and parked.license_plate == license_plate:
                return spot
        return None

    def total_capacity(self) -> int:
        return len(self.spots)

    def capacity_for(self, vehicle_type: VehicleType) -> int:
        return self._capacites.get(vehicle_type, 0)

    def available_count(self, vehicle_type: Optional[VehicleType] = None) -> int:
        """Nombre de places actuellement libres, éventuellement pour un seul type."""
        return sum(
            1 for spot in self.spots
            if (vehicle_type is None or spot.vehicle_type == vehicle_type) and spot.is_available()
        )

    def snapshot(self) -> List[SpotStatus]:
        return [spot.status() for spot in self.spots]


class ParkingLot:
    """
    Parking à plusieurs niveaux.

    Une instance partagée par processus est obtenue via get_instance() (ou
    get_parking_lot()). Elle est créée au premier accès, même si plusieurs
    threads y accèdent en même temps. Les niveaux sont ajoutés pendant la
    phase d'initialisation, avant le trafic concurrent.
    """

    _instance: Optional["ParkingLot"] = None
    _instance_lock = threading.Lock()

    def __init__(self) -> None:
        self._levels: List[Level] = []

    @classmethod
    def get_instance(cls) -> "ParkingLot":
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
                    logger.info("[ParkingLot] Instance partagée initialisée.")
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        with cls._instance_lock:
            cls._instance = None

    @property
    def levels(self) -> Tuple[Level, ...]:
        return tuple(self._levels)

    def add_level(self, level: Level) -> None:
        self._levels.append(level)
        logger.info("Niveau %s ajouté (%d places).", level.floor, level.total_capacity())

    def allocate(self, vehicle: Vehicle) -> Optional[ParkingSpot]:
        """
        Gare le véhicule au premier niveau qui a une place compatible.

        Returns:
            La place attribuée, ou None si le parking est complet pour ce type
        """
        for level in self._levels:
            spot = level.allocate(vehicle)
            if spot is not None:
                logger.info(
                    "Véhicule %s garé (niveau %s, place %d).",
                    vehicle.license_plate, level.floor, spot.spot_number,
                )
                return spot
        logger.warning(
            "Impossible de garer le véhicule %s : aucune place %s libre.",
            vehicle.license_plate, vehicle.vehicle_type.libelle,
        )
        return None

    def release(self, vehicle: Vehicle) -> Optional[ParkingSpot]:
        """
        Libère la place du véhicule, quel que soit son niveau.

        Returns:
            La place libérée, ou None si le véhicule est introuvable
        """
        for level in self._levels:
            spot = level.release(vehicle)
            if spot is not None:
                logger.info(
                    "Véhicule %s sorti (niveau %s, place %d).",
                    vehicle.license_plate, level.floor, spot.spot_number,
                )
                return spot
        logger.warning("Véhicule %s introuvable.", vehicle.license_plate)
        return None

    def snapshot(self) -> List[SpotStatus]:
        etat: List[SpotStatus] = []
        for level in self._levels:
            etat.extend(level.snapshot())
        return etat

    def get_status(self) -> dict:
        """
        Retourne l'état actuel du parking.

        Returns:
            Dictionnaire contenant les compteurs globaux et par type
        """
        libres_par_type = {
            vehicle_type: sum(level.available_count(vehicle_type) for level in self._levels)
            for vehicle_type in VehicleType
        }
        return {
            "niveaux": len(self._levels),
            "places_totales": sum(level.total_capacity() for level in self._levels),
            "places_libres": sum(libres_par_type.values()),
            "libres_par_type": libres_par_type,
        }


def get_parking_lot() -> ParkingLot:
    """Accès à l'instance partagée du parking."""
    return ParkingLot.get_instance()
