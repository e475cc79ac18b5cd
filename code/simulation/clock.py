# simulation/clock.py
class SimClock:
    """
    Horloge de simulation: temps simulé en secondes, monotone croissant.
    """

    def __init__(self, start: float = 0.0):
        self.time = float(start)

    def get_time(self) -> float:
        return self.time

    def set_time(self, time: float):
        if time < self.time:
            raise ValueError(f"Le temps simulé ne peut pas reculer ({time} < {self.time})")
        self.time = float(time)
