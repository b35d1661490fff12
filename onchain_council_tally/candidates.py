"""
The council election roster.

The order matters: position i of a voting note belongs to the i-th candidate.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional

from .tally.types import Candidate

_LOGGER = logging.getLogger(__name__)

CANDIDATES = [
    Candidate(
        name="Robbie Baxter",
        address="D3S6VBVPDD2Y2SNYFAT65AL25KUCKMY5IYM7RK3N4LMJIW44G2OWKBRSOI",
    ),
    Candidate(
        name="Simon Belingar",
        address="YIP5W6ISX2GLMMF4FZD3GPXUFPTQKWQGGBJJW2ZIRLRQARZ4TUWBRBT37Q",
    ),
    Candidate(
        name="Patrick Bennett",
        address="patrick.algo",
    ),
    Candidate(
        name="Scott Bolasevich aka Flipping",
        address="7EISH72TGOIOMBHON3G5LE3HIZYORQL5R3KLKPI22YRGLW44JUW4UDNFGA",
    ),
    Candidate(
        name="Michael T Chuang",
        address="michaeltchuang.algo",
    ),
    Candidate(
        name="Mohammad Ghaisi",
        address="emg110.algo",
    ),
    Candidate(
        name="Taras Hirniak",
        address="67OLU3IO4YWOAYJK273DQJS6RU2ES45WPAYHWNIQJNYKRXGZ5NPBMMEK3I",
    ),
    Candidate(
        name="Paul Hinrichsen",
        address="3HOQI46R2WNG2NIUYZRTXUAMCJBED7ZBPQ7J5WV7K4LM2POBSUCLJWMUZA",
    ),
    Candidate(
        name="Dr. Uroš Hudomalj",
        address="ZJC56ESEXZRYYWTVEZ56HFPDI54FTJ2WK3RJMVZRPVXR2KKWIHDA7EPSZM",
    ),
    Candidate(
        name="Andrew Shaman Kotulak",
        address="IICAB345T3BQTQVTKUI24CV2VPEKBTVWGUCXXNTVXX2NNQDUMZBLTDOPAM",
    ),
    Candidate(
        name="Gábor Lipovszki",
        address="KXK5TLUOTPXI36YJXMGDHGONH2CXAHPRU5ZPQRFFAYVKBAFNWGOOAUDMZE",
    ),
    Candidate(
        name="Mohamed Majdalawieh aka Angel of Ares",
        address="IEDYR4YZTV22AZW7Q4UILNMHJN256MBBYOSKUK6RD6DSL5JSM46DTYJQKU",
    ),
    Candidate(
        name="Sean Menstell-Fraser",
        address="NRXRF5I3IYRF6XCFIITU6IGH2XNJEPC42TMPVRCSTBOQDME4LMUDTO4BOU",
    ),
    Candidate(
        name="John Mizzoni",
        address="FISHERMANBPAHXQJEBJNIMMTBVNCOTXG6TUHYXQNE64FEJRVDTO3E3A43E",
    ),
    Candidate(
        name="Kieran Nelson",
        address="RS7TLLQRXKBAQDAVTSZC2ZLMVMLNSCL3FOUOESJJZ5XSKFFL56UI6X33CI",
    ),
    Candidate(
        name="Paweł Pierścionek",
        address="YKTO4C2WAC2BSMJMYKM43YCGUYHU3XHAHAYG6UUSF3BLOF6VMGRXKYB7ZU",
    ),
    Candidate(
        name="Ľudovít Scholtz aka Everyday Algonaut",
        address="ALGONAUTSPIUHDCX3SLFXOFDUKOE4VY36XV4JX2JHQTWJNKVBKPEBQACRY",
    ),
    Candidate(
        name="Nicholas Shellabarger aka Shelly",
        address="7UBGYVIHJKBIDSVZABRZSGAMN55HZSBX4MK3VBCHVM6F7OIWSGEN3Z75L4",
    ),
    Candidate(
        name="Wilder Stubbs",
        address="6OTYAIMCZ6DLBXMOOYD7P3AQGWP5IKDVJOHMJWKGUUQXYCZTTZOMKDH4WA",
    ),
    Candidate(
        name="Julian van der Welle",
        address="DPSDCMAH6Z4GXXQOFNJAFJEOT6PNRZDO4R5N7WKJD5FH77EKEPTICH4FCQ",
    ),
    Candidate(
        name="Joseph Wu",
        address="YM7DVJVUCHAC42QPRMIX5XUPU6W2DIPU6ZNOEYTZ6Z2HISYNE4SQF5PLOA",
    ),
    Candidate(
        name="Naoki Yamamoto",
        address="5HHP6MI64C6LJJBEUHDHBB4HZEKUI43KMMUJKJWZOLVD2FYSPFD5SOHQYA",
    ),
]


def load_roster(path: Optional[str] = None) -> List[Candidate]:
    """
    Load the roster from a JSON list of {"name", "address"} objects,
    falling back to the built-in roster.
    """
    if not path:
        return list(CANDIDATES)
    with Path(path).open(encoding="utf-8") as f:
        entries = json.load(f)
    roster = [Candidate(name=e["name"], address=e["address"]) for e in entries]
    names = [c.name for c in roster]
    if len(set(names)) != len(names):
        raise ValueError(f"Roster {path} contains duplicate candidate names")
    _LOGGER.info(f"Loaded roster of {len(roster)} candidates from {path}")
    return roster
