# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db carteira.db
  python app.py clientes novo "Acme" --pct 30 --produto trafego
  python app.py vendas registrar 1 1.000,00
  python app.py churn iniciar 1
  python app.py planos criar 1 --tipo performance --severidade critico --indicador "CPA alto"
  python app.py rel resumo 2024-01
"""

from carteira.adapters.cli import main

if __name__ == "__main__":
    main()
