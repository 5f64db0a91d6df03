"""
Free-text place name -> JMA region / area codes.

Strategies, first hit wins:
  1. compound "<prefecture><都|道|府|県><city>"  (city must belong to that prefecture)
  2. plain municipality (class20), nationwide
  3. plain prefecture (offices; 北海道 / 沖縄県 go through their center)

Matching is exact name first, then unanchored containment (entry name contains
the query). Plain municipality search returns the first class20 entry in
area.json order, so a name shared by several prefectures (e.g. 府中市) resolves
to whichever comes first; use the compound form to pick a specific one.
"""
import unicodedata
from typing import Callable, Collection, Iterable, List, Optional, Tuple

from .area_index import AreaHierarchyIndex, AreaIndexLoad, CityAncestry
from .errors import LocationNotFound
from .schemas import AreaEntry, ResolvedLocation
from .utils import logger

PREF_SUFFIXES = "都道府県"


def _nfkc(s: str) -> str:
    return unicodedata.normalize("NFKC", s).strip()


def _first_match(entries: Iterable[AreaEntry], query: str) -> Optional[AreaEntry]:
    """Exact name wins over containment; otherwise first in iteration order."""
    contained: Optional[AreaEntry] = None
    for e in entries:
        if e.name == query:
            return e
        if contained is None and query in e.name:
            contained = e
    return contained


def split_compound(text: str) -> List[Tuple[str, str]]:
    """
    All (prefecture-candidate, remainder) splits of text where the candidate
    is at least two characters and ends with 都/道/府/県 and the remainder is
    non-empty. Ordered by split position.

    >>> split_compound("京都府京都市")
    [('京都', '府京都市'), ('京都府', '京都市'), ('京都府京都', '市')]
    """
    out: List[Tuple[str, str]] = []
    for i in range(1, len(text) - 1):
        if text[i] in PREF_SUFFIXES:
            out.append((text[: i + 1], text[i + 1:]))
    return out


def prefecture_center(index: AreaHierarchyIndex, pref: str) -> Optional[AreaEntry]:
    """
    Hokkaido and Okinawa are split over several offices, none of them named
    北海道 / 沖縄県. The center named "<pref>地方" (北海道地方, 沖縄地方)
    stands in for the prefecture.
    """
    names = {pref + "地方"}
    if pref.endswith("県"):
        names.add(pref[:-1] + "地方")
    return next((c for c in index.iter_level("centers") if c.name in names), None)


def center_offices(index: AreaHierarchyIndex, center: AreaEntry) -> List[AreaEntry]:
    """Child offices of a center, the one sharing the center's forecast office first."""
    offices = [o for o in (index.lookup("offices", c) for c in center.children) if o is not None]
    offices.sort(key=lambda o: o.office_name != center.office_name)
    return offices


class LocationResolver:
    def __init__(self, area: AreaIndexLoad):
        self._area = area

    def _index(self) -> AreaHierarchyIndex:
        if self._area.index is None:
            raise self._area.error
        return self._area.index

    # ---------- public ----------
    def resolve(self, text: str) -> ResolvedLocation:
        index = self._index()
        query = _nfkc(text or "")
        if not query:
            raise LocationNotFound(text or "")

        hit = self._resolve_compound(index, query, text)
        if hit is not None:
            return hit

        city = self._search_city(index, query)
        if city is not None:
            return self._city_result(city, "city")

        office = _first_match(index.iter_level("offices"), query)
        if office is None:
            center = prefecture_center(index, query)
            offices = center_offices(index, center) if center is not None else []
            office = offices[0] if offices else None
        if office is not None:
            return ResolvedLocation(
                region_code=office.code,
                area_code=None,
                is_city_search=False,
                region_name=office.name,
                matched_strategy="prefecture",
            )

        raise LocationNotFound(text)

    # ---------- strategies ----------
    def _resolve_compound(
        self, index: AreaHierarchyIndex, query: str, original: str
    ) -> Optional[ResolvedLocation]:
        """
        Returns None when the text is not a compound name.

        A split whose candidate is exactly an office name (or a prefecture
        standing for a center, see prefecture_center) commits: the city
        part must then be found inside that office (those offices) or LocationNotFound is
        raised. Exact names are tried across every split before containment,
        so 京都府京都市 splits as 京都府 + 京都市 rather than 京都 + 府京都市.

        A split that only names an office by containment is accepted only if
        its remainder is exactly a city of that office; otherwise it is not
        treated as compound (京都市 must not become 東京都 + 市).
        """
        splits = split_compound(query)
        if not splits:
            return None
        offices = list(index.iter_level("offices"))

        for pref, rest in splits:
            office = next((o for o in offices if o.name == pref), None)
            if office is not None:
                scope = {office.code}
            else:
                center = prefecture_center(index, pref)
                if center is None:
                    continue
                scope = {o.code for o in center_offices(index, center)}
            city = self._search_city(index, rest, in_offices=scope)
            if city is None:
                logger.info(
                    "resolve_compound_miss",
                    extra={"location": query, "offices": sorted(scope), "city": rest},
                )
                raise LocationNotFound(original)
            return self._city_result(city, "compound")

        for pref, rest in splits:
            for office in offices:
                if pref not in office.name:
                    continue
                city = self._search_city(index, rest, in_offices={office.code}, exact_only=True)
                if city is not None:
                    return self._city_result(city, "compound")
        return None

    def _search_city(
        self,
        index: AreaHierarchyIndex,
        name: str,
        in_offices: Optional[Collection[str]] = None,
        exact_only: bool = False,
    ) -> Optional[CityAncestry]:
        accept: Callable[[CityAncestry], bool] = (
            (lambda a: a.office.code in in_offices) if in_offices else (lambda a: True)
        )
        contained: Optional[CityAncestry] = None
        for city in index.iter_level("class20s"):
            is_exact = city.name == name
            if not is_exact:
                if exact_only or contained is not None or name not in city.name:
                    continue
            anc = index.city_ancestry(city.code)
            if anc is None or not accept(anc):
                # broken parent chain or other prefecture: skip
                continue
            if is_exact:
                return anc
            contained = anc
        return contained

    @staticmethod
    def _city_result(anc: CityAncestry, strategy: str) -> ResolvedLocation:
        return ResolvedLocation(
            region_code=anc.office.code,
            area_code=anc.class10.code,
            is_city_search=True,
            region_name=anc.office.name,
            area_name=anc.class10.name,
            city_code=anc.city.code,
            city_name=anc.city.name,
            matched_strategy=strategy,
        )
