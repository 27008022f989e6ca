from keepup.cli.main import main

main()
