from tlens.cli import main

main()
