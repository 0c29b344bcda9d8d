"""
Voile — приватный off-chain matching и settlement pricing для досрочного unlock.

Пользователь запрашивает advance под позицию, заблокированную cooldown-ом,
LP предлагает ликвидность, а on-chain попадают только commitments и notes.

Пакеты:
- voile.core       : доменные модели, fixed-point арифметика, crypto, контракты
- voile.matching   : builders и matching engine
- voile.lifecycle  : state machine сделки и запроса
- voile.settlement : граница с settlement layer (notes, транзакции)
"""

__version__ = "0.3.0"
