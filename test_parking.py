import logging
import threading

import pytest

from parking_base import InvalidAllocation, ParkingSpot, Vehicle, VehicleType
from parking_system import Level, ParkingLot, get_parking_lot


@pytest.fixture
def parking():
    p = ParkingLot()
    p.add_level(Level(1, [(VehicleType.CAR, 2), (VehicleType.TRUCK, 1)]))
    p.add_level(Level(2, [(VehicleType.CAR, 1)]))
    return p


@pytest.fixture
def instance_partagee():
    ParkingLot.reset_instance()
    yield
    ParkingLot.reset_instance()


def test_place_libre_a_la_creation():
    spot = ParkingSpot(1, VehicleType.CAR)
    assert spot.is_available()
    assert spot.parked_vehicle is None

def test_place_occupee_puis_liberee():
    spot = ParkingSpot(1, VehicleType.CAR)
    voiture = Vehicle.car("AB-123")
    spot.allocate(voiture)
    assert not spot.is_available()
    assert spot.parked_vehicle == voiture

    assert spot.release() == voiture
    assert spot.is_available()

def test_liberation_place_vide_sans_effet():
    spot = ParkingSpot(1, VehicleType.TRUCK)
    assert spot.release() is None
    assert spot.release() is None
    assert spot.is_available()

@pytest.mark.parametrize("type_place", list(VehicleType))
@pytest.mark.parametrize("type_vehicule", list(VehicleType))
def test_type_incompatible_refuse(type_place, type_vehicule):
    spot = ParkingSpot(1, type_place)
    vehicule = Vehicle("X-1", type_vehicule)
    if type_place == type_vehicule:
        spot.allocate(vehicule)
        assert not spot.is_available()
    else:
        with pytest.raises(InvalidAllocation):
            spot.allocate(vehicule)
        assert not spot.try_allocate(vehicule)
        assert spot.is_available()

def test_place_deja_occupee_refusee():
    spot = ParkingSpot(3, VehicleType.CAR)
    spot.allocate(Vehicle.car("A1"))
    with pytest.raises(InvalidAllocation):
        spot.allocate(Vehicle.car("A2"))
    # L'occupant d'origine reste en place
    assert spot.parked_vehicle.license_plate == "A1"

def test_liberation_par_plaque_uniquement():
    spot = ParkingSpot(1, VehicleType.CAR)
    spot.allocate(Vehicle.car("A1"))
    assert spot.release_if_parked("B2") is None
    assert not spot.is_available()
    assert spot.release_if_parked("A1") == Vehicle.car("A1")
    assert spot.is_available()

def test_pas_de_double_reservation():
    spot = ParkingSpot(1, VehicleType.CAR)
    depart = threading.Barrier(16)
    resultats = []

    def garer(i):
        depart.wait()
        resultats.append(spot.try_allocate(Vehicle.car(f"C{i}")))

    threads = [threading.Thread(target=garer, args=(i,)) for i in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert resultats.count(True) == 1
    assert not spot.is_available()

def test_niveau_concurrent_sans_double_reservation():
    level = Level(1, {VehicleType.CAR: 10})
    depart = threading.Barrier(25)
    places = []

    def garer(i):
        depart.wait()
        places.append(level.allocate(Vehicle.car(f"C{i}")))

    threads = [threading.Thread(target=garer, args=(i,)) for i in range(25)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    attribuees = [p for p in places if p is not None]
    assert len(attribuees) == 10
    assert len({p.spot_number for p in attribuees}) == 10
    assert level.available_count() == 0

def test_numerotation_des_places():
    level = Level(1, [(VehicleType.CAR, 2), (VehicleType.TRUCK, 1), (VehicleType.MOTORCYCLE, 0)])
    assert [s.spot_number for s in level.spots] == [1, 2, 3]
    assert [s.vehicle_type for s in level.spots] == [VehicleType.CAR, VehicleType.CAR, VehicleType.TRUCK]
    assert all(s.floor == 1 for s in level.spots)

def test_capacite_totale_constante():
    capacites = {VehicleType.CAR: 3, VehicleType.TRUCK: 2, VehicleType.MOTORCYCLE: 4}
    level = Level(1, capacites)
    assert level.total_capacity() == sum(capacites.values())

    level.allocate(Vehicle.car("A1"))
    level.allocate(Vehicle.motorcycle("M1"))
    assert level.total_capacity() == 9
    assert level.capacity_for(VehicleType.CAR) == 3
    assert level.available_count(VehicleType.CAR) == 2

def test_capacite_type_absent():
    level = Level(1, {VehicleType.CAR: 1})
    assert level.capacity_for(VehicleType.TRUCK) == 0
    assert level.allocate(Vehicle.truck("T1")) is None

def test_capacite_copiee():
    capacites = {VehicleType.CAR: 1}
    level = Level(1, capacites)
    capacites[VehicleType.CAR] = 50
    assert level.capacity_for(VehicleType.CAR) == 1

def test_capacite_negative_refusee():
    with pytest.raises(ValueError):
        Level(1, {VehicleType.CAR: -1})

def test_type_capacite_inconnu():
    with pytest.raises(TypeError):
        Level(1, {"CAR": 2})

def test_aller_retour_niveau():
    level = Level(1, {VehicleType.CAR: 2, VehicleType.TRUCK: 1})
    avant = [s.is_available() for s in level.spots]
    voiture = Vehicle.car("A1")

    assert level.allocate(voiture) is not None
    assert level.release(voiture) is not None

    assert level.total_capacity() == 3
    assert [s.is_available() for s in level.spots] == avant

def test_echec_allocation_sans_mutation():
    level = Level(1, {VehicleType.CAR: 1, VehicleType.TRUCK: 1})
    level.allocate(Vehicle.car("A1"))
    avant = level.snapshot()
    assert level.allocate(Vehicle.car("A2")) is None
    assert level.snapshot() == avant

def test_liberation_ignore_le_type():
    level = Level(1, {VehicleType.CAR: 1})
    level.allocate(Vehicle.car("A1"))
    # Même plaque, métadonnée de type différente
    spot = level.release(Vehicle.truck("A1"))
    assert spot is not None
    assert spot.is_available()

def test_instantane_niveau():
    level = Level(2, [(VehicleType.CAR, 1), (VehicleType.MOTORCYCLE, 1)])
    level.allocate(Vehicle.motorcycle("M1"))
    etat = level.snapshot()
    assert [(p.spot_number, p.vehicle_type, p.occupied) for p in etat] == [
        (1, VehicleType.CAR, False),
        (2, VehicleType.MOTORCYCLE, True),
    ]
    assert etat[1].license_plate == "M1"
    assert etat[0].license_plate is None
    assert all(p.floor == 2 for p in etat)

def test_ordre_des_niveaux():
    p = ParkingLot()
    p.add_level(Level(1, {VehicleType.CAR: 0, VehicleType.TRUCK: 2}))
    p.add_level(Level(2, {VehicleType.CAR: 1}))
    spot = p.allocate(Vehicle.car("A1"))
    assert spot is not None
    assert spot.floor == 2

def test_scenario_complet(parking):
    niveau_1, niveau_2 = parking.levels

    a1 = parking.allocate(Vehicle.car("A1"))
    a2 = parking.allocate(Vehicle.car("A2"))
    assert (a1.floor, a1.spot_number) == (1, 1)
    assert (a2.floor, a2.spot_number) == (1, 2)

    a3 = parking.allocate(Vehicle.car("A3"))
    assert (a3.floor, a3.spot_number) == (2, 1)

    t1 = parking.allocate(Vehicle.truck("T1"))
    assert (t1.floor, t1.spot_number) == (1, 3)

    assert parking.release(Vehicle.car("A2")) is a2
    a4 = parking.allocate(Vehicle.car("A4"))
    assert a4 is a2
    assert niveau_1.find_vehicle("A4") is a2

    assert parking.release(Vehicle.car("A9")) is None
    assert niveau_2.available_count() == 0

def test_parking_complet(parking):
    for plaque in ("A1", "A2", "A3"):
        assert parking.allocate(Vehicle.car(plaque)) is not None
    assert parking.allocate(Vehicle.car("A4")) is None
    assert parking.allocate(Vehicle.motorcycle("M1")) is None

def test_niveaux_dupliques_acceptes():
    p = ParkingLot()
    p.add_level(Level(1, {VehicleType.CAR: 1}))
    p.add_level(Level(1, {VehicleType.CAR: 1}))
    assert p.allocate(Vehicle.car("A1")) is not None
    assert p.allocate(Vehicle.car("A2")) is not None
    assert len(p.levels) == 2

def test_instantane_parking(parking):
    parking.allocate(Vehicle.truck("T1"))
    etat = parking.snapshot()
    assert [(p.floor, p.spot_number) for p in etat] == [(1, 1), (1, 2), (1, 3), (2, 1)]
    assert [p.occupied for p in etat] == [False, False, True, False]

def test_get_status(parking):
    parking.allocate(Vehicle.car("A1"))
    status = parking.get_status()
    assert status["niveaux"] == 2
    assert status["places_totales"] == 4
    assert status["places_libres"] == 3
    assert status["libres_par_type"][VehicleType.CAR] == 2
    assert status["libres_par_type"][VehicleType.TRUCK] == 1
    assert status["libres_par_type"][VehicleType.MOTORCYCLE] == 0

def test_echecs_journalises(parking, caplog):
    with caplog.at_level(logging.WARNING, logger="parking_system"):
        parking.allocate(Vehicle.motorcycle("M1"))
        parking.release(Vehicle.car("A9"))
    messages = [r.getMessage() for r in caplog.records]
    assert any("M1" in m for m in messages)
    assert any("A9" in m and "introuvable" in m for m in messages)

def test_instance_unique(instance_partagee):
    premier = get_parking_lot()
    premier.add_level(Level(1, {VehicleType.CAR: 1}))
    premier.allocate(Vehicle.car("A1"))

    second = ParkingLot.get_instance()
    assert second is premier
    assert second.levels[0].find_vehicle("A1") is not None

def test_instance_unique_concurrente(instance_partagee):
    depart = threading.Barrier(12)
    instances = []

    def acceder():
        depart.wait()
        instances.append(get_parking_lot())

    threads = [threading.Thread(target=acceder) for _ in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len({id(i) for i in instances}) == 1
