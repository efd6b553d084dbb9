# main.py
import logging
from typing import Iterable

from parking_base import SpotStatus, Vehicle
from parking_system import CAPACITES_NIVEAU_1, CAPACITES_NIVEAU_2, Level, ParkingLot, get_parking_lot


def afficher_disponibilite(etat: Iterable[SpotStatus]) -> None:
    """Affiche l'instantané du parking dans la console, niveau par niveau."""
    niveau_courant = None
    for place in etat:
        if place.floor != niveau_courant:
            niveau_courant = place.floor
            print(f"Niveau {niveau_courant} - Disponibilité :")
        if place.occupied:
            print(f"Place {place.spot_number}: Occupée par {place.license_plate} ({place.vehicle_type.libelle})")
        else:
            print(f"Place {place.spot_number}: Libre pour {place.vehicle_type.libelle}")


def construire_parking() -> ParkingLot:
    parking = get_parking_lot()
    parking.add_level(Level(1, CAPACITES_NIVEAU_1))
    parking.add_level(Level(2, CAPACITES_NIVEAU_2))
    return parking


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    parking = construire_parking()

    voiture = Vehicle.car("ABC123")
    camion = Vehicle.truck("XYZ789")
    moto = Vehicle.motorcycle("M1234")

    parking.allocate(voiture)
    parking.allocate(camion)
    parking.allocate(moto)

    afficher_disponibilite(parking.snapshot())

    parking.release(moto)
    parking.release(Vehicle.car("INCONNU"))  # Jamais garé

    afficher_disponibilite(parking.snapshot())
    print(parking.get_status())

if __name__ == "__main__":
    main()
