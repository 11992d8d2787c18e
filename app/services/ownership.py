from __future__ import annotations


class OwnershipResolver:
    """Works out which DLCs count as owned for a (user, game, platform).

    A selected complete edition grants every DLC of the game. Otherwise only
    explicit ``owned`` DLC rows count. Missing rows give an empty set.
    """

    def __init__(self, catalog, ownership_store):
        self.catalog = catalog
        self.ownership_store = ownership_store

    def owned_dlc_ids(self, user_id: str, game_id: str, platform_id: str) -> set[str]:
        dlcs = self.catalog.dlcs(game_id)
        dlc_ids = {dlc.id for dlc in dlcs}

        edition_id = self.ownership_store.edition_for(user_id, game_id, platform_id)
        if edition_id:
            edition = self.catalog.get(edition_id)
            if edition is not None and edition.is_complete_edition:
                return dlc_ids

        owned = self.ownership_store.owned_addition_ids(user_id, game_id, platform_id)
        return owned & dlc_ids
