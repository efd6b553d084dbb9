import sys
import random
import string
import time
from typing import Dict, List

from matplotlib.backends.backend_qt5agg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure
from PyQt5.QtWidgets import (QApplication, QMainWindow, QWidget, QVBoxLayout,
                             QHBoxLayout, QGridLayout, QLabel, QPushButton,
                             QTextEdit, QFrame, QStackedWidget)
from PyQt5.QtCore import Qt, pyqtSignal, QObject, QTimer
from PyQt5.QtGui import QFont

from parking_base import SpotStatus, Vehicle, VehicleType
from parking_system import Level, ParkingLot, get_parking_lot


# Capacités réduites pour que la grille tienne à l'écran
CAPACITES_DASHBOARD = [
    [(VehicleType.CAR, 6), (VehicleType.TRUCK, 2), (VehicleType.MOTORCYCLE, 2)],
    [(VehicleType.CAR, 4), (VehicleType.TRUCK, 1), (VehicleType.MOTORCYCLE, 5)],
]
PLACES_PAR_RANGEE = 5

ICONES = {VehicleType.CAR: "🚗", VehicleType.TRUCK: "🚚", VehicleType.MOTORCYCLE: "🏍"}

STYLE_LIBRE = """
    background-color: #10b981;
    color: white;
    border-radius: 8px;
    border: 2px solid #059669;
"""
STYLE_OCCUPEE = """
    background-color: #f43f5e;
    color: white;
    border-radius: 8px;
    border: 2px solid #e11d48;
    font-size: 11px;
"""


# --- CLASS 1 : WORKER (Gestion Logique) ---
class ParkingWorker(QObject):
    log_signal = pyqtSignal(str)
    status_signal = pyqtSignal(dict)
    update_grid_signal = pyqtSignal(int, int, bool)  # floor, spot_number, occupée

    def __init__(self, parking: ParkingLot):
        super().__init__()
        self.parking = parking
        self.entry_times: Dict[str, float] = {}
        self.vehicules: Dict[str, Vehicle] = {}

    def log(self, message):
        self.log_signal.emit(message)
        print(message)

    @staticmethod
    def nouvelle_plaque():
        lettres = "".join(random.choices(string.ascii_uppercase, k=2))
        return f"{lettres}-{random.randint(100, 999)}"

    def entree_auto(self, vehicle_type):
        vehicule = Vehicle(self.nouvelle_plaque(), vehicle_type)
        spot = self.parking.allocate(vehicule)
        if spot is None:
            self.log(f"[Refus] Aucune place {vehicle_type.libelle} libre pour {vehicule.license_plate}.")
            QApplication.beep()
        else:
            self.vehicules[vehicule.license_plate] = vehicule
            self.entry_times[vehicule.license_plate] = time.time()
            self.log(f"--- {ICONES[vehicle_type]} Entrée {vehicule.license_plate} "
                     f"(Niveau {spot.floor}, P-{spot.spot_number}) ---")
            self.update_grid_signal.emit(spot.floor, spot.spot_number, True)
        self.update_status()

    def sortie_auto(self):
        if not self.vehicules:
            self.log("[Erreur] Le parking est vide !")
            return

        plaque = random.choice(list(self.vehicules))
        vehicule = self.vehicules.pop(plaque)
        duration = time.time() - self.entry_times.pop(plaque)

        spot = self.parking.release(vehicule)
        if spot is None:
            self.log(f"[Erreur] Véhicule {plaque} introuvable.")
        else:
            self.log(f"--- 🛑 Sortie {plaque} (Niveau {spot.floor}, P-{spot.spot_number}). "
                     f"Durée: {int(duration)}s ---")
            self.update_grid_signal.emit(spot.floor, spot.spot_number, False)
        self.update_status()

    def update_status(self):
        status = self.parking.get_status()
        status["snapshot"] = self.parking.snapshot()
        self.status_signal.emit(status)


# --- CLASS 2 : WIDGET GRAPHIQUE D'OCCUPATION ---
class OccupationChartWidget(QWidget):
    def __init__(self):
        super().__init__()
        layout = QVBoxLayout()
        self.setLayout(layout)
        layout.setContentsMargins(0, 0, 0, 0)

        self.figure = Figure(facecolor='#2b2b2b')
        self.canvas = FigureCanvas(self.figure)
        layout.addWidget(self.canvas)

    def draw_chart(self, snapshot: List[SpotStatus]):
        self.figure.clear()
        ax = self.figure.add_subplot(111)
        ax.set_facecolor('#2b2b2b')

        floors = sorted({place.floor for place in snapshot})
        types = list(VehicleType)
        largeur = 0.8 / max(len(types), 1)

        for i, vehicle_type in enumerate(types):
            occupees, libres = [], []
            for floor in floors:
                places = [p for p in snapshot if p.floor == floor and p.vehicle_type == vehicle_type]
                occupees.append(sum(1 for p in places if p.occupied))
                libres.append(sum(1 for p in places if not p.occupied))
            x = [f + (i - 1) * largeur for f in range(len(floors))]
            ax.bar(x, occupees, width=largeur, color='#f43f5e', edgecolor='#2b2b2b')
            ax.bar(x, libres, width=largeur, bottom=occupees, color='#10b981', edgecolor='#2b2b2b')
            for xi, total in zip(x, [o + l for o, l in zip(occupees, libres)]):
                ax.text(xi, total + 0.1, ICONES[vehicle_type], ha='center', color='white', fontsize=9)

        ax.set_xticks(range(len(floors)))
        ax.set_xticklabels([f"Niveau {f}" for f in floors], color='white')
        ax.tick_params(colors='white')
        ax.set_title("OCCUPATION PAR NIVEAU ET PAR TYPE", color="white", fontsize=14, fontweight='bold')

        from matplotlib.patches import Patch
        legend_elements = [
            Patch(facecolor='#f43f5e', label='Occupée'),
            Patch(facecolor='#10b981', label='Libre'),
        ]
        ax.legend(handles=legend_elements, loc='upper right', facecolor='#2b2b2b', edgecolor='white', labelcolor='white')

        self.canvas.draw()


# --- CLASS 3 : DASHBOARD (Avec Switch) ---
class ParkingDashboard(QMainWindow):
    def __init__(self, parking: ParkingLot):
        super().__init__()
        self.setWindowTitle("Parking Multi-Niveaux - Dashboard")
        self.setGeometry(100, 100, 1200, 800)

        self.simulation_start = time.time()

        self.setStyleSheet("""
            QMainWindow { background-color: #0f172a; }
            QLabel { color: white; font-family: 'Segoe UI', sans-serif; }
            QPushButton {
                background-color: #334155;
                color: white;
                border: none;
                padding: 12px;
                border-radius: 8px;
                font-family: 'Segoe UI', sans-serif;
                font-weight: bold;
                font-size: 14px;
            }
            QPushButton:hover { background-color: #475569; }
            QPushButton:pressed { background-color: #1e293b; }
        """)

        self.worker = ParkingWorker(parking)
        self.worker.log_signal.connect(self.append_log)
        self.worker.status_signal.connect(self.update_dashboard)
        self.worker.update_grid_signal.connect(self.update_place)

        self.init_ui()
        self.worker.update_status()

        self.timer_clock = QTimer(self)
        self.timer_clock.timeout.connect(self.update_clocks)
        self.timer_clock.start(1000)

    def init_ui(self):
        main = QWidget()
        self.setCentralWidget(main)
        layout = QVBoxLayout(main)
        layout.setSpacing(20)
        layout.setContentsMargins(20, 20, 20, 20)

        # --- HEADER SUPERIEUR (CLOCK) ---
        header_top = QHBoxLayout()
        self.lbl_sim_time = QLabel("⏱ SESSION: 00:00")
        self.lbl_sim_time.setFont(QFont("Segoe UI", 12, QFont.Bold))
        self.lbl_sim_time.setStyleSheet("color: #3b82f6; background-color: #1e293b; padding: 5px 10px; border-radius: 5px;")
        header_top.addStretch()
        header_top.addWidget(self.lbl_sim_time)
        layout.addLayout(header_top)

        # 1. KPI SECTION (places libres par type)
        kpi_layout = QHBoxLayout()
        kpi_layout.setSpacing(15)
        couleurs = {VehicleType.CAR: "#3b82f6", VehicleType.TRUCK: "#f59e0b", VehicleType.MOTORCYCLE: "#8b5cf6"}
        self.cards = {}
        for vehicle_type in VehicleType:
            card = self.create_kpi_card(f"{vehicle_type.libelle.upper()}S LIBRES", "0", couleurs[vehicle_type])
            self.cards[vehicle_type] = card
            kpi_layout.addWidget(card)
        kpi_layout.addStretch()

        self.lbl_system_status = QLabel("DISPONIBLE")
        self.lbl_system_status.setFont(QFont("Segoe UI", 14, QFont.Bold))
        self.lbl_system_status.setStyleSheet("background-color: #10b981; padding: 8px 16px; border-radius: 6px;")
        status_box = QHBoxLayout()
        l_stat = QLabel("ÉTAT DU PARKING :")
        l_stat.setStyleSheet("color: #94a3b8; font-weight: bold;")
        status_box.addWidget(l_stat)
        status_box.addWidget(self.lbl_system_status)
        kpi_layout.addLayout(status_box)
        layout.addLayout(kpi_layout)

        # 2. GRILLE DES PLACES (un bloc par niveau)
        grids = QHBoxLayout()
        self.places_widgets: Dict[tuple, QLabel] = {}
        for level in self.worker.parking.levels:
            grid_frame = QFrame()
            grid_frame.setStyleSheet("background-color: #1e293b; border-radius: 12px;")
            grid_layout = QGridLayout(grid_frame)
            grid_layout.setSpacing(10)
            grid_layout.setContentsMargins(15, 15, 15, 15)

            titre = QLabel(f"NIVEAU {level.floor}")
            titre.setFont(QFont("Segoe UI", 11, QFont.Bold))
            grid_layout.addWidget(titre, 0, 0, 1, PLACES_PAR_RANGEE)

            for i, place in enumerate(level.snapshot()):
                lbl = QLabel()
                lbl.setAlignment(Qt.AlignCenter)
                lbl.setFixedSize(100, 70)
                lbl.setFont(QFont("Segoe UI", 10, QFont.Bold))
                grid_layout.addWidget(lbl, 1 + i // PLACES_PAR_RANGEE, i % PLACES_PAR_RANGEE)
                self.places_widgets[(place.floor, place.spot_number)] = lbl
                self._render_place(lbl, place)
            grids.addWidget(grid_frame)
        layout.addLayout(grids)

        # 3. CONTROLS & MONITORING
        bottom = QHBoxLayout()
        btns = QVBoxLayout()
        btns.setSpacing(10)

        for vehicle_type in VehicleType:
            b = QPushButton(f"{ICONES[vehicle_type]}  Entrée {vehicle_type.libelle}")
            b.setStyleSheet("QPushButton { background-color: #334155; border-left: 4px solid #3b82f6; } "
                            "QPushButton:hover { background-color: #475569; }")
            b.clicked.connect(lambda _, t=vehicle_type: self.worker.entree_auto(t))
            btns.addWidget(b)

        b_sortie = QPushButton("🛑  Sortie Aléatoire")
        b_sortie.setStyleSheet("QPushButton { background-color: #334155; border-left: 4px solid #f43f5e; } "
                               "QPushButton:hover { background-color: #475569; }")
        b_sortie.clicked.connect(self.worker.sortie_auto)

        b_switch = QPushButton("🔄  Vue Console / Graphique")
        b_switch.setStyleSheet("border: 1px solid #475569;")
        b_switch.clicked.connect(self.toggle_view)

        btns.addSpacing(5)
        btns.addWidget(b_sortie)
        btns.addSpacing(15)
        btns.addWidget(b_switch)
        btns.addStretch()

        # Stacked Widget (Console / Graphique)
        self.stack = QStackedWidget()
        self.logs = QTextEdit()
        self.logs.setReadOnly(True)
        self.logs.setStyleSheet("""
            QTextEdit {
                background-color: rgba(30, 41, 59, 0.7);
                color: #10b981;
                font-family: 'Consolas', 'Courier New', monospace;
                font-size: 13px;
                border: 1px solid #475569;
                border-radius: 8px;
                padding: 10px;
            }
        """)
        self.chart_widget = OccupationChartWidget()
        self.stack.addWidget(self.logs)
        self.stack.addWidget(self.chart_widget)

        bottom.addLayout(btns, 1)
        bottom.addWidget(self.stack, 3)
        layout.addLayout(bottom, 1)

    def create_kpi_card(self, title, value, base_color):
        frame = QFrame()
        # .QFrame cible uniquement le cadre, pas les QLabel enfants
        frame.setStyleSheet(f"""
            .QFrame {{
                background-color: qlineargradient(x1:0, y1:0, x2:0, y2:1, stop:0 {base_color}, stop:1 #1e293b);
                border-radius: 10px;
                border: 1px solid {base_color};
            }}
            QLabel {{
                border: none;
                background: transparent;
            }}
        """)
        frame.setFixedSize(180, 85)

        vbox = QVBoxLayout(frame)
        vbox.setContentsMargins(15, 10, 15, 10)

        l_title = QLabel(title)
        l_title.setFont(QFont("Segoe UI", 9, QFont.Bold))
        l_title.setStyleSheet("color: rgba(255, 255, 255, 180);")

        l_val = QLabel(value)
        l_val.setFont(QFont("Segoe UI", 18, QFont.Bold))
        l_val.setStyleSheet("color: white;")
        l_val.setAlignment(Qt.AlignLeft | Qt.AlignVCenter)

        vbox.addWidget(l_title)
        vbox.addWidget(l_val)
        return frame

    def toggle_view(self):
        self.stack.setCurrentIndex(1 - self.stack.currentIndex())

    def update_dashboard(self, stats):
        for vehicle_type, card in self.cards.items():
            card.findChildren(QLabel)[1].setText(str(stats["libres_par_type"].get(vehicle_type, 0)))

        if stats.get("places_libres", 0) == 0:
            self.lbl_system_status.setText("COMPLET")
            self.lbl_system_status.setStyleSheet("background-color: #f43f5e; padding: 8px 16px; border-radius: 6px;")
        else:
            self.lbl_system_status.setText("DISPONIBLE")
            self.lbl_system_status.setStyleSheet("background-color: #10b981; padding: 8px 16px; border-radius: 6px;")

        self.chart_widget.draw_chart(stats.get("snapshot", []))

    def append_log(self, text):
        self.logs.append(text)
        self.logs.verticalScrollBar().setValue(self.logs.verticalScrollBar().maximum())

    def _render_place(self, widget, place: SpotStatus):
        icon = ICONES[place.vehicle_type]
        if place.occupied:
            widget.setStyleSheet(STYLE_OCCUPEE)
            widget.setText(f"P-{place.spot_number} | {icon}\n{place.license_plate}")
        else:
            widget.setStyleSheet(STYLE_LIBRE)
            widget.setText(f"P-{place.spot_number} | {icon}\nLIBRE")

    def update_place(self, floor, spot_number, occupee):
        widget = self.places_widgets.get((floor, spot_number))
        if widget is None:
            return
        for level in self.worker.parking.levels:
            if level.floor != floor:
                continue
            place = level.spots[spot_number - 1].status()
            if place.occupied == occupee:
                self._render_place(widget, place)
                return

    def update_clocks(self):
        elapsed = time.time() - self.simulation_start
        m, s = divmod(int(elapsed), 60)
        self.lbl_sim_time.setText(f"⏱ SESSION: {m:02d}:{s:02d}")

        current_time = time.time()
        for plaque, entry in self.worker.entry_times.items():
            vehicule = self.worker.vehicules.get(plaque)
            if vehicule is None:
                continue
            for level in self.worker.parking.levels:
                spot = level.find_vehicle(plaque)
                if spot is None:
                    continue
                duration_sec = int(current_time - entry)
                mm, ss = divmod(duration_sec, 60)
                hh, mm = divmod(mm, 60)
                widget = self.places_widgets[(spot.floor, spot.spot_number)]
                widget.setText(f"P-{spot.spot_number} | {ICONES[vehicule.vehicle_type]}\n{hh:02d}:{mm:02d}:{ss:02d}")
                break


def construire_parking() -> ParkingLot:
    parking = get_parking_lot()
    for floor, capacites in enumerate(CAPACITES_DASHBOARD, start=1):
        parking.add_level(Level(floor, capacites))
    return parking


if __name__ == "__main__":
    app = QApplication(sys.argv)
    window = ParkingDashboard(construire_parking())
    window.show()
    sys.exit(app.exec_())
