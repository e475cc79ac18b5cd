# models/node.py
class Node:
    """
    Représente un nœud mobile du réseau DTN, porteur d'un routeur.
    """

    def __init__(self, id, router):
        """
        Constructeur d'un objet Node

        Args:
            id (int): numéro d'identification du nœud (obligatoire)
            router (DTNRouter): routeur propre au nœud (jamais partagé)
        """
        self.id = int(id)
        self.router = router
        self.connections = []  # Liste des connexions actives

    def __str__(self):
        """
        Descripteur de l'objet Node

        Returns:
            str: description textuelle du nœud
        """
        nb_con = len(self.connections)
        return f"Node ID {self.id} has {nb_con} connection(s)\tRouter: {type(self.router).__name__}"

    def __repr__(self):
        return f"Node({self.id})"

    #*************** Opérations courantes ****************
    def add_connection(self, con):
        """
        Ajoute une connexion à la liste si elle n'y est pas déjà.

        Args:
            con (Connection): la connexion à ajouter.
        """
        if con not in self.connections:
            self.connections.append(con)

    def remove_connection(self, con):
        """
        Supprime une connexion de la liste si elle y est présente.

        Args:
            con (Connection): la connexion à supprimer
        """
        if con in self.connections:
            self.connections.remove(con)

    def degree(self):
        """
        Nombre de connexions actives du nœud.

        Returns:
            int: le nombre de voisins du nœud.
        """
        return len(self.connections)

    def get_neighbors_ids(self):
        """
        Récupère les IDs des voisins du nœud.

        Returns:
            list(int): liste des IDs des voisins
        """
        return [con.get_other_node(self).id for con in self.connections]
